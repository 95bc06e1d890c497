"""Settings for the Harvest API client and the ``harvest-api`` command line.

Settings are stored as YAML (``~/.harvest-api/config.yml`` unless another
path is given) and validated by one pydantic model per section. Individual
settings are addressed as ``section.name``, e.g. ``auth.method``.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Literal, Optional

import yaml  # type: ignore[import-untyped]
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path.home() / ".harvest-api" / "config.yml"
SECRET_SETTINGS = frozenset({"auth.password", "auth.access_token"})
MASK = "********"


class _Section(BaseModel):
    model_config = ConfigDict(extra="forbid")


class AccountSettings(_Section):
    """Which Harvest account to talk to."""

    subdomain: Optional[str] = None


class AuthSettings(_Section):
    """Credentials for basic auth or an OAuth access token."""

    method: Literal["basic", "oauth"] = "basic"
    username: Optional[str] = None
    password: Optional[str] = None
    access_token: Optional[str] = None

    @property
    def credentials(self) -> Optional[tuple[str, str]]:
        """Username and password, or None unless both are set."""
        if not self.username or not self.password:
            return None
        return self.username, self.password


class HttpSettings(_Section):
    timeout: float = Field(30.0, gt=0, le=600)
    user_agent: str = "harvest-api"


class MockSettings(_Section):
    host: str = "127.0.0.1"
    port: int = Field(8080, ge=1, le=65535)


class AdvancedSettings(_Section):
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_case_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v


class HarvestSettings(_Section):
    """Everything stored in the config file."""

    model_config = ConfigDict(extra="forbid", coerce_numbers_to_str=True)

    version: str = "1.0"
    account: AccountSettings = Field(default_factory=AccountSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    mock: MockSettings = Field(default_factory=MockSettings)
    advanced: AdvancedSettings = Field(default_factory=AdvancedSettings)


def setting_keys() -> list[str]:
    """List every addressable setting as ``section.name`` (or ``name``)."""
    keys = []
    for name, field in HarvestSettings.model_fields.items():
        section = field.annotation
        if isinstance(section, type) and issubclass(section, BaseModel):
            keys.extend(f"{name}.{sub}" for sub in section.model_fields)
        else:
            keys.append(name)
    return keys


def describe_error(err: ValidationError) -> str:
    """Turn the first pydantic error into ``"auth.method: Input should be ..."``."""
    first = err.errors()[0]
    location = ".".join(str(part) for part in first["loc"])
    return f"{location}: {first['msg']}" if location else first["msg"]


def parse_settings(text: str) -> HarvestSettings:
    """Validate the YAML text of a config file.

    Raises:
        ValueError: If the text is not YAML, not a mapping, or not valid settings
    """
    try:
        raw = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ValueError(f"unreadable YAML: {e}") from e
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise ValueError("top level is not a mapping")
    try:
        return HarvestSettings.model_validate(raw)
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {describe_error(e)}") from e


class ConfigManager:
    """Load, change and persist ``HarvestSettings``.

    Attributes:
        config_path: YAML file backing the settings
        settings: Current validated settings
    """

    def __init__(self, config_path: Optional[Path] = None):
        """Load settings, writing a default file if none exists yet.

        Raises:
            ValueError: If the existing file was unusable. It is moved to
                ``<name>.yml.backup`` and defaults are written before raising.
        """
        self.config_path = config_path or DEFAULT_CONFIG_PATH
        self.settings = HarvestSettings()
        if not self.config_path.exists():
            self.save()
            return
        try:
            self.settings = parse_settings(self.config_path.read_text(encoding="utf-8"))
        except ValueError as e:
            backup = self._backup(move=True)
            self.save()
            logger.warning(f"Replaced unusable config {self.config_path}: {e}")
            raise ValueError(f"Unusable config file moved to {backup}, defaults written instead. {e}") from e

    @property
    def backup_path(self) -> Path:
        return self.config_path.with_suffix(".yml.backup")

    def _backup(self, move: bool = False) -> Path:
        if move:
            self.config_path.replace(self.backup_path)
        else:
            shutil.copy(self.config_path, self.backup_path)
        return self.backup_path

    def _split(self, key: str) -> tuple[Optional[str], str]:
        if key not in setting_keys():
            raise ValueError(f"Unknown setting '{key}'")
        section, _, name = key.rpartition(".")
        return section or None, name

    def get(self, key: str) -> Any:
        """Get one setting.

        Raises:
            ValueError: If ``key`` names no setting
        """
        section, name = self._split(key)
        owner = getattr(self.settings, section) if section else self.settings
        return getattr(owner, name)

    def set(self, key: str, value: Any) -> None:
        """Change one setting and save.

        ``value`` is coerced by the section model, so command line strings
        such as ``"12.5"`` become numbers. Nothing changes if validation fails.

        Raises:
            ValueError: If ``key`` is unknown or ``value`` is invalid for it
        """
        section, name = self._split(key)
        data = self.settings.model_dump()
        (data[section] if section else data)[name] = value
        try:
            self.settings = HarvestSettings.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid configuration: {describe_error(e)}") from e
        self.save()

    def unset(self, key: str) -> None:
        """Restore one setting to its default and save."""
        section, name = self._split(key)
        model = type(getattr(self.settings, section)) if section else HarvestSettings
        self.set(key, model.model_fields[name].default)

    def validate(self) -> HarvestSettings:
        """Check the file as it is on disk now, without replacing anything.

        Raises:
            ValueError: If the file does not hold valid settings
        """
        return parse_settings(self.config_path.read_text(encoding="utf-8"))

    def save(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(
            yaml.safe_dump(self.settings.model_dump(), sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )

    def reset(self) -> Optional[Path]:
        """Write default settings, keeping a copy of the current file.

        Returns:
            The backup path, or None if there was no file to back up
        """
        backup = self._backup() if self.config_path.exists() else None
        self.settings = HarvestSettings()
        self.save()
        return backup

    def items(self, mask_secrets: bool = True) -> dict[str, Any]:
        """Get every setting keyed by ``section.name``.

        Passwords and tokens that are set are replaced by ``MASK`` unless
        ``mask_secrets`` is False.
        """
        values = {}
        for key in setting_keys():
            value = self.get(key)
            if mask_secrets and key in SECRET_SETTINGS and value:
                value = MASK
            values[key] = value
        return values
