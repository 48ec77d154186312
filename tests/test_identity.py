"""Tests for identity extraction."""

from __future__ import annotations

import pytest

from archly import IDENTITY_STRATEGIES, IdentityResolver, NullInputError, resolve_identity
from archly.identity import from_accessor, from_field, from_str


class Module:
    def __init__(self, id):
        self.id = id


class Resource:
    def __init__(self, id):
        self.id = id

    def get_id(self):
        return self.id


class Role:
    def __init__(self, name: str) -> None:
        self.name = name

    def __str__(self) -> str:
        return self.name


class Both:
    """Exposes get_id(), id and __str__ with different values."""

    id = "from-field"

    def get_id(self) -> str:
        return "from-accessor"

    def __str__(self) -> str:
        return "from-str"


class Blank:
    def __init__(self, id: str = "") -> None:
        self.id = id

    def get_id(self) -> str:
        return ""

    def __str__(self) -> str:
        return "from-str"


class TestResolveIdentity:
    """Tests for resolve_identity()."""

    def test_none_raises(self) -> None:
        with pytest.raises(NullInputError):
            resolve_identity(None)

    def test_empty_string_raises(self) -> None:
        with pytest.raises(NullInputError):
            resolve_identity("")

    def test_string_passthrough(self) -> None:
        assert resolve_identity("a") == "a"

    def test_get_id_returning_string(self) -> None:
        assert resolve_identity(Resource("1")) == "1"

    def test_get_id_returning_non_string_falls_through(self) -> None:
        """A non-string get_id() defers to the next strategy (id is an int here too)."""
        res = Resource(1)
        assert resolve_identity(res) == str(res)

    def test_id_field_as_string(self) -> None:
        assert resolve_identity(Module("1")) == "1"

    def test_id_field_as_number_falls_back_to_str(self) -> None:
        mod = Module(1)
        assert resolve_identity(mod) == str(mod)

    def test_default_string_conversion(self) -> None:
        assert resolve_identity(Role("a")) == "a"

    def test_strategy_order(self) -> None:
        """get_id() wins over id, which wins over str()."""
        assert resolve_identity(Both()) == "from-accessor"

    def test_empty_get_id_defers_to_id(self) -> None:
        assert resolve_identity(Blank("from-field")) == "from-field"

    def test_empty_get_id_and_id_defer_to_str(self) -> None:
        assert resolve_identity(Blank()) == "from-str"


class TestIdentityResolver:
    """Tests for custom strategy lists."""

    def test_default_strategies(self) -> None:
        assert IDENTITY_STRATEGIES == (from_accessor, from_field, from_str)

    def test_custom_order(self) -> None:
        resolver = IdentityResolver((from_field, from_accessor, from_str))
        assert resolver(Both()) == "from-field"

    def test_no_strategy_matches(self) -> None:
        resolver = IdentityResolver((from_accessor,))
        with pytest.raises(NullInputError):
            resolver.resolve(Role("a"))

    def test_empty_key_raises(self) -> None:
        resolver = IdentityResolver((from_accessor, from_field))
        with pytest.raises(NullInputError):
            resolver.resolve(Blank())

    def test_repr_lists_strategies(self) -> None:
        assert "from_accessor" in repr(IdentityResolver())
