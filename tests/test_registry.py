"""Tests for the role/resource Registry."""

from __future__ import annotations

import pytest

from archly import (
    DuplicateEntryError,
    InvalidKeyError,
    NotFoundError,
    NullInputError,
    Registry,
    RegistryNotEmptyError,
    SnapshotError,
)


class Role:
    def __init__(self, id: str, description: str = "") -> None:
        self.id = id
        self.description = description

    def get_id(self) -> str:
        return self.id


class Unnamed:
    def get_id(self) -> str:
        return ""

    def __str__(self) -> str:
        return "unnamed"


class TestAddRemove:
    """Tests for add() and remove()."""

    def test_starts_empty(self) -> None:
        reg = Registry()
        assert reg.size() == 0
        assert reg.export() == {"records": {}, "registry": {}}

    def test_add_null_raises(self) -> None:
        with pytest.raises(NullInputError):
            Registry().add(None)

    def test_add_and_duplicate(self) -> None:
        reg = Registry()
        reg.add("RES-1")
        assert reg.size() == 1
        with pytest.raises(DuplicateEntryError, match="Entry 'RES-1' is already in the registry."):
            reg.add("RES-1")

    def test_add_under_missing_parent(self) -> None:
        reg = Registry()
        with pytest.raises(NotFoundError, match="Entry 'RES-1' is not in registry."):
            reg.add("RES-1-A", "RES-1")
        assert reg.size() == 0

    def test_remove_missing(self) -> None:
        reg = Registry()
        with pytest.raises(NotFoundError):
            reg.remove("RES")
        with pytest.raises(NullInputError):
            reg.remove(None)

    def test_remove_leaf(self) -> None:
        reg = Registry()
        reg.add("RES-1")
        reg.add("RES-2")
        assert reg.remove("RES-1") == ["RES-1"]
        assert reg.size() == 1
        assert reg.get_record("RES-1") is None

    def test_clear(self) -> None:
        reg = Registry()
        reg.add("a")
        reg.add("b", "a")
        reg.clear()
        assert reg.size() == 0
        assert reg.export()["records"] == {}

    def test_ensure(self) -> None:
        reg = Registry()
        assert reg.ensure("a") is True
        assert reg.ensure("a") is False
        assert reg.size() == 1

    def test_ensure_propagates_missing_parent(self) -> None:
        with pytest.raises(NotFoundError):
            Registry().ensure("child", "parent")

    @pytest.mark.parametrize("entry", ["*", "a::b"])
    def test_add_reserved_key_raises(self, entry: str) -> None:
        reg = Registry()
        with pytest.raises(InvalidKeyError):
            reg.add(entry)
        with pytest.raises(InvalidKeyError):
            reg.ensure(entry)
        assert reg.size() == 0
        assert reg.ancestor_path("*") == ["*"]

    def test_add_object_with_empty_id(self) -> None:
        reg = Registry()
        assert reg.add(Unnamed()) == "unnamed"
        assert reg.ancestor_path(Unnamed()) == ["unnamed", "*"]
        restored = Registry()
        restored.import_(reg.export())
        assert restored.keys() == ["unnamed"]

    def test_import_rejects_separator_key(self) -> None:
        with pytest.raises(SnapshotError):
            Registry().import_({"records": {}, "registry": {"a::b": ""}})


class TestHierarchy:
    """Tests for parent/child removal semantics."""

    @pytest.fixture
    def reg(self) -> Registry:
        reg = Registry()
        reg.add("RES-1")
        reg.add("RES-2")
        reg.add("RES-1-A", "RES-1")
        reg.add("RES-1-B", "RES-1")
        reg.add("RES-2-A", "RES-2")
        reg.add("RES-1-B-1", "RES-1-B")
        reg.add("RES-2-A-1", "RES-2-A")
        reg.add("RES-2-A-1-i", "RES-2-A-1")
        return reg

    def test_cascade_removes_subtree(self, reg: Registry) -> None:
        removed = reg.remove("RES-2", True)
        assert removed == ["RES-2-A", "RES-2-A-1", "RES-2-A-1-i", "RES-2"]
        assert reg.size() == 4
        for key in removed:
            assert not reg.has(key)
            assert reg.get_record(key) is None

    def test_cascade_order_is_depth_first(self, reg: Registry) -> None:
        removed = reg.remove("RES-1", True)
        assert removed == ["RES-1-A", "RES-1-B", "RES-1-B-1", "RES-1"]

    def test_non_cascade_reparents(self, reg: Registry) -> None:
        removed = reg.remove("RES-1-B", False)
        assert removed == ["RES-1-B"]
        assert reg.size() == 7
        assert reg.has("RES-1-B-1")
        assert reg.parent_of("RES-1-B-1") == "RES-1"
        assert reg.has_child("RES-1")

    def test_remove_children_leaves_parent_childless(self, reg: Registry) -> None:
        reg.remove("RES-1-B", False)
        reg.remove("RES-1-B-1", False)
        reg.remove("RES-1-A", True)
        assert not reg.has_child("RES-1")

    def test_reparent_top_level_to_root(self) -> None:
        reg = Registry()
        reg.add("A")
        reg.add("B", "A")
        reg.remove("A")
        assert reg.parent_of("B") == Registry.ROOT
        assert reg.ancestor_path("B") == ["B", "*"]

    def test_reparent_then_cascade(self) -> None:
        """A→root, B→A, C→B: removing B links C to A; cascading A takes C too."""
        reg = Registry()
        reg.add("A")
        reg.add("B", "A")
        reg.add("C", "B")

        assert reg.remove("B", False) == ["B"]
        assert reg.parent_of("C") == "A"
        assert reg.size() == 2

        assert reg.remove("A", True) == ["C", "A"]
        assert reg.size() == 0

    def test_deep_cascade(self) -> None:
        reg = Registry()
        reg.add("n0")
        for i in range(1, 2000):
            reg.add(f"n{i}", f"n{i - 1}")
        removed = reg.remove("n0", True)
        assert len(removed) == 2000
        assert removed[-1] == "n0"
        assert reg.size() == 0

    def test_children_of(self, reg: Registry) -> None:
        assert reg.children_of("RES-1") == ["RES-1-A", "RES-1-B"]
        assert reg.children_of(Registry.ROOT) == ["RES-1", "RES-2"]


class TestAncestorPath:
    """Tests for ancestor_path()."""

    def test_none_is_wildcard(self) -> None:
        assert Registry().ancestor_path(None) == ["*"]

    def test_unregistered_is_wildcard_only(self) -> None:
        reg = Registry()
        assert reg.ancestor_path("ROLE-1") == ["*"]

    def test_path_lengths(self) -> None:
        reg = Registry()
        reg.add("ROLE-1")
        assert reg.ancestor_path("ROLE-1") == ["ROLE-1", "*"]
        reg.add("ROLE-2")
        reg.add("ROLE-1-1", "ROLE-1")
        reg.add("ROLE-1-2", "ROLE-1")
        assert reg.ancestor_path("ROLE-1") == ["ROLE-1", "*"]
        assert reg.ancestor_path("ROLE-1-2") == ["ROLE-1-2", "ROLE-1", "*"]
        reg.add("ROLE-1-1-1", "ROLE-1-1")
        assert reg.ancestor_path("ROLE-1-1-1") == ["ROLE-1-1-1", "ROLE-1-1", "ROLE-1", "*"]

    def test_object_entries(self) -> None:
        reg = Registry()
        reg.add(Role("staff"))
        reg.add(Role("editor"), Role("staff"))
        assert reg.ancestor_path(Role("editor")) == ["editor", "staff", "*"]


class TestExportImport:
    """Tests for export() / import_()."""

    def test_export_plain_data(self) -> None:
        reg = Registry()
        role = Role("Rr2", "Role 2")
        reg.add("Rr1")
        reg.add(role)
        exported = reg.export()
        assert exported["registry"] == {"Rr1": "", "Rr2": ""}
        assert exported["records"]["Rr1"] == "Rr1"
        assert exported["records"]["Rr2"] == {"id": "Rr2", "description": "Role 2"}
        assert not isinstance(exported["records"]["Rr2"], Role)

    def test_import_round_trip(self) -> None:
        reg = Registry()
        reg.add("Rr1")
        reg.add(Role("Rr2", "Role 2"), "Rr1")
        imported = Registry()
        imported.import_(reg.export())
        assert imported.size() == 2
        assert imported.has("Rr1")
        assert imported.ancestor_path("Rr2") == reg.ancestor_path("Rr2")
        assert isinstance(imported.get_record("Rr1"), str)
        assert isinstance(imported.get_record("Rr2"), dict)
        assert not isinstance(imported.get_record("Rr2"), Role)

    def test_import_with_factory(self) -> None:
        reg = Registry()
        reg.add("Rr1")
        reg.add(Role("Rr2", "Role 2"))
        imported = Registry()
        imported.import_(reg.export(), lambda data: Role(**data))
        assert isinstance(imported.get_record("Rr1"), str)
        assert isinstance(imported.get_record("Rr2"), Role)
        assert imported.get_record("Rr2").description == "Role 2"

    def test_import_into_non_empty_fails(self) -> None:
        reg = Registry("roles")
        reg.add("a")
        with pytest.raises(RegistryNotEmptyError, match="roles registry is not empty"):
            reg.import_({"records": {}, "registry": {}})

    def test_import_missing_parent_fails(self) -> None:
        with pytest.raises(SnapshotError):
            Registry().import_({"records": {}, "registry": {"b": "a"}})

    def test_import_cycle_fails(self) -> None:
        with pytest.raises(SnapshotError):
            Registry().import_({"registry": {"a": "b", "b": "a"}})

    def test_import_missing_keys_is_empty(self) -> None:
        reg = Registry()
        reg.import_({})
        assert reg.size() == 0


class TestDisplay:
    """Tests for text rendering."""

    def test_display_tree(self) -> None:
        reg = Registry()
        reg.add("ROLE-1")
        reg.add("ROLE-1-1", "ROLE-1")
        assert reg.display() == "- ROLE-1\n - ROLE-1-1\n"

    def test_str_lists_parents(self) -> None:
        reg = Registry()
        reg.add("a")
        reg.add("bb", "a")
        assert str(reg) == "\t a - *\n\tbb - a\n"

    def test_display_path(self) -> None:
        assert Registry.display_path(["x", "*"]) == "- -> x -> * <"
