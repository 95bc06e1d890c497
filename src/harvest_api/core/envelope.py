"""Envelope codec for the Harvest wire format.

Every resource body travels wrapped in a single-key JSON object whose key is
the resource's wire name::

    {"user": {"id": 12, "email": "jane@example.com"}}

List responses are arrays of such single-key objects. Decoding is schema-less:
the name is taken from whatever key is present, and the body is kept as parsed
JSON until it is validated into a concrete type.
"""

import json
from dataclasses import dataclass
from typing import Any, TypeVar, Union

from pydantic import BaseModel, TypeAdapter

T = TypeVar("T")

JsonBytes = Union[bytes, bytearray, str]


class EnvelopeError(ValueError):
    """Raised when a payload does not have the envelope structure."""


@dataclass
class Envelope:
    """A single wire envelope.

    Attributes:
        name: Wire name of the wrapped resource (e.g. ``"user"``)
        body: Parsed JSON body, shape unknown until decoded into a type
    """

    name: str
    body: Any

    def to_dict(self) -> dict[str, Any]:
        """Convert to the ``{name: body}`` wire object."""
        return {self.name: self.body}

    @classmethod
    def from_dict(cls, data: Any) -> "Envelope":
        """Create Envelope from a parsed wire object.

        The first key in document order names the envelope. An empty object
        yields an envelope with an empty name and no body.
        """
        if not isinstance(data, dict):
            raise EnvelopeError(f"Expected JSON object for envelope, got {type(data).__name__}")
        for key, value in data.items():
            return cls(name=key, body=value)
        return cls(name="", body=None)


def resource_name_of(resource: Any) -> str:
    """Get the lower-cased wire name a resource declares for itself."""
    name = getattr(type(resource), "resource_name", None)
    if not name:
        raise TypeError(f"{type(resource).__name__} does not declare a resource_name")
    return str(name).lower()


def _dump_body(resource: Any) -> Any:
    if isinstance(resource, BaseModel):
        return resource.model_dump(mode="json", by_alias=True, exclude_none=True)
    return TypeAdapter(type(resource)).dump_python(resource, mode="json", exclude_none=True)


def wrap(resource: Any) -> Envelope:
    """Wrap a resource into an envelope named after its wire name."""
    return Envelope(name=resource_name_of(resource), body=_dump_body(resource))


def encode(resource: Any) -> bytes:
    """Encode a resource into its enveloped JSON representation.

    Args:
        resource: Value declaring a ``resource_name``

    Returns:
        UTF-8 encoded ``{"<name>": <body>}``

    Raises:
        TypeError: If the value does not declare a wire name
        pydantic_core.PydanticSerializationError: If the body cannot be serialized
    """
    return json.dumps(wrap(resource).to_dict(), ensure_ascii=False).encode("utf-8")


def decode(data: JsonBytes) -> Envelope:
    """Decode a single envelope without assuming the body's shape."""
    return Envelope.from_dict(json.loads(data))


def decode_list(data: JsonBytes) -> list[Envelope]:
    """Decode an array of envelopes, preserving order."""
    parsed = json.loads(data)
    if not isinstance(parsed, list):
        raise EnvelopeError(f"Expected JSON array of envelopes, got {type(parsed).__name__}")
    return [Envelope.from_dict(item) for item in parsed]


def decode_into(data: JsonBytes, target: type[T]) -> T:
    """Decode an envelope and validate its body into ``target``.

    Raises:
        json.JSONDecodeError: If the payload is not JSON
        EnvelopeError: If the payload is not an envelope
        pydantic.ValidationError: If the body does not fit ``target``
    """
    envelope = decode(data)
    return TypeAdapter(target).validate_python(envelope.body)


def decode_list_into(data: JsonBytes, target: type[T]) -> list[T]:
    """Decode an array of envelopes into a list of ``target`` values.

    All envelopes are unwrapped first, then the collected bodies are validated
    as one ``list[target]`` in a single pass.
    """
    bodies = [envelope.body for envelope in decode_list(data)]
    return TypeAdapter(list[target]).validate_python(bodies)  # type: ignore[valid-type]
