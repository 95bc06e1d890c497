"""Tests for query parameters."""

from datetime import date, datetime, timedelta, timezone

import pytest  # type: ignore[import-not-found]

from harvest_api.core.models import Client, Project, User
from harvest_api.core.params import InvoiceStatus, Params
from harvest_api.core.timeframe import Timeframe


class TestPrimitives:
    """Test Params primitives."""

    def test_empty_params_are_usable(self) -> None:
        """Test that a fresh Params works without setup."""
        params = Params()

        assert params.get("missing") == ""
        assert params.get_all("missing") == []
        assert params.encode() == ""
        assert len(params) == 0

    def test_set_replaces(self) -> None:
        """Test that set replaces all values."""
        params = Params().add("page", "1").add("page", "2").set("page", "3")
        assert params.get_all("page") == ["3"]

    def test_add_appends(self) -> None:
        """Test that add keeps previous values."""
        params = Params().add("tag", "a").add("tag", "b")

        assert params.get("tag") == "a"
        assert params.get_all("tag") == ["a", "b"]

    def test_delete(self) -> None:
        """Test removing a key."""
        params = Params().set("page", "1").delete("page").delete("never-set")
        assert "page" not in params

    def test_initial_values(self) -> None:
        """Test creating Params from a mapping."""
        params = Params({"from": "2014-02-01", "tag": ["a", "b"]})

        assert params.get("from") == "2014-02-01"
        assert params.get_all("tag") == ["a", "b"]

    def test_encode_sorts_keys(self) -> None:
        """Test that encoding is deterministic."""
        params = Params().set("to", "2014-04-01").set("from", "2014-02-01").set("billable", "yes")
        assert params.encode() == "billable=yes&from=2014-02-01&to=2014-04-01"

    def test_encode_escapes(self) -> None:
        """Test that values are URL-encoded."""
        params = Params().set("updated_since", "2014-02-01 10:00:00")
        assert params.encode() == "updated_since=2014-02-01+10%3A00%3A00"

    def test_decode(self) -> None:
        """Test parsing a query string."""
        params = Params.decode("from=2014-02-01&tag=a&tag=b")

        assert params.get("from") == "2014-02-01"
        assert params.get_all("tag") == ["a", "b"]

    def test_items_are_copies(self) -> None:
        """Test that iterating does not expose internal lists."""
        params = Params().set("page", "1")
        for _, values in params.items():
            values.append("2")
        assert params.get_all("page") == ["1"]


class TestMergeAndClone:
    """Test merging and cloning."""

    def test_merge_is_a_union(self) -> None:
        """Test that merge appends instead of replacing."""
        params = Params().set("tag", "a").set("page", "1")
        params.merge(Params().set("tag", "b").set("billable", "yes"))

        assert params.get_all("tag") == ["a", "b"]
        assert params.get("page") == "1"
        assert params.get("billable") == "yes"

    def test_merge_returns_receiver(self) -> None:
        """Test that merge can be chained."""
        params = Params()
        assert params.merge({"page": "1"}) is params

    def test_merge_is_associative(self) -> None:
        """Test that grouping of merges does not change the encoded result."""
        a = Params().set("from", "2014-02-01").add("tag", "x")
        b = Params().set("to", "2014-04-01").add("tag", "y")
        c = Params().set("billable", "yes").add("tag", "z")

        left = a.clone().merge(b.clone().merge(c))
        right = a.clone().merge(b).merge(c)

        assert left.encode() == right.encode()

    def test_clone_is_independent(self) -> None:
        """Test that mutating a clone leaves the original untouched."""
        original = Params().add("tag", "a")
        copy = original.clone()
        copy.add("tag", "b").set("page", "2")

        assert original.get_all("tag") == ["a"]
        assert "page" not in original
        assert copy.get_all("tag") == ["a", "b"]


class TestHelpers:
    """Test domain helpers."""

    def test_for_timeframe(self) -> None:
        """Test that a timeframe sets from and to."""
        params = Params().for_timeframe(Timeframe(date(2014, 2, 1), date(2014, 4, 1)))
        assert params.encode() == "from=2014-02-01&to=2014-04-01"

    def test_for_incomplete_timeframe(self) -> None:
        """Test that an incomplete timeframe adds nothing."""
        params = Params().for_timeframe(Timeframe(start_date=date(2014, 2, 1)))
        assert params.encode() == ""

    @pytest.mark.parametrize("flag,expected", [(True, "yes"), (False, "no")])
    def test_billable(self, flag: bool, expected: str) -> None:
        """Test billable yes/no rendering."""
        assert Params().billable(flag).get("billable") == expected

    def test_billed_flags(self) -> None:
        """Test only_billed and only_unbilled."""
        assert Params().only_billed().get("only_billed") == "yes"
        assert Params().only_unbilled().get("only_unbilled") == "yes"

    def test_is_closed(self) -> None:
        """Test is_closed rendering."""
        assert Params().is_closed(True).get("is_closed") == "yes"
        assert Params().is_closed(False).get("is_closed") == "no"

    def test_updated_since_naive(self) -> None:
        """Test that naive datetimes are taken as UTC."""
        params = Params().updated_since(datetime(2014, 2, 1, 10, 30, 0))
        assert params.get("updated_since") == "2014-02-01 10:30:00"

    def test_updated_since_converts_to_utc(self) -> None:
        """Test that aware datetimes are converted to UTC."""
        moment = datetime(2014, 2, 1, 12, 0, 0, tzinfo=timezone(timedelta(hours=2)))
        assert Params().updated_since(moment).get("updated_since") == "2014-02-01 10:00:00"

    def test_page(self) -> None:
        """Test page rendering."""
        assert Params().page(3).get("page") == "3"

    def test_status_enum_and_string(self) -> None:
        """Test that status accepts enum members and arbitrary strings."""
        assert Params().status(InvoiceStatus.PASTDUE).get("status") == "pastdue"
        assert Params().status("whatever").get("status") == "whatever"

    def test_resource_filters(self) -> None:
        """Test for_project, for_user and by_client."""
        params = Params().for_project(Project(id=7)).for_user(User(id=3)).by_client(Client(id=9))

        assert params.get("project_id") == "7"
        assert params.get("user_id") == "3"
        assert params.get("client") == "9"

    def test_helpers_chain(self) -> None:
        """Test chaining several helpers."""
        params = (
            Params()
            .for_timeframe(Timeframe(date(2014, 2, 1), date(2014, 4, 1)))
            .billable(True)
            .page(2)
        )
        assert params.encode() == "billable=yes&from=2014-02-01&page=2&to=2014-04-01"

    def test_invoice_status_values(self) -> None:
        """Test the server-recognized invoice states."""
        assert [s.value for s in InvoiceStatus] == ["open", "partial", "draft", "paid", "unpaid", "pastdue"]
