"""Hierarchical registry for roles and resources.

A registry is a forest of identity keys. Each key maps to its parent key
(``ROOT`` for nodes attached directly to the implicit wildcard) and to the
original value it was registered with. Stored values are kept for retrieval
only; evaluation uses keys alone.

A parent must already be registered when a child referencing it is added,
so cycles cannot be formed.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator, Optional

from pydantic import BaseModel

from .exceptions import DuplicateEntryError, InvalidKeyError, NotFoundError, RegistryNotEmptyError
from .identity import resolve_identity
from .models import RegistrySnapshot, validate_snapshot
from .permissions.constants import ROOT, SEP, WILDCARD

logger = logging.getLogger(__name__)


class Registry:
    """Parent/child hierarchy of identity keys plus their stored values.

    Example::

        roles = Registry()
        roles.add("staff")
        roles.add("editor", "staff")
        roles.ancestor_path("editor")   # ["editor", "staff", "*"]
        roles.ancestor_path("nobody")   # ["*"]
    """

    WILDCARD = WILDCARD
    ROOT = ROOT

    def __init__(self, name: str = "registry") -> None:
        self.name = name
        self._parents: dict[str, str] = {}
        self._records: dict[str, Any] = {}

    # ── Mutation ─────────────────────────────────────────

    def add(self, entry: Any, parent: Any = None) -> str:
        """Add ``entry`` under ``parent`` (or under the wildcard root).

        Returns:
            The key of the added entry.

        Raises:
            NullInputError: ``entry`` is empty.
            InvalidKeyError: the key is the wildcard or contains ``::``.
            DuplicateEntryError: ``entry`` is already registered.
            NotFoundError: ``parent`` is given but not registered.
        """
        key = resolve_identity(entry)
        if key == WILDCARD:
            raise InvalidKeyError("entry", f"'{WILDCARD}' is implicit and cannot be registered", value=key)
        if SEP in key:
            raise InvalidKeyError("entry", f"Must not contain '{SEP}'", value=key)
        if key in self._parents:
            raise DuplicateEntryError(key)
        parent_key = ROOT
        if parent:
            parent_key = resolve_identity(parent)
            if parent_key not in self._parents:
                raise NotFoundError(parent_key)
        self._parents[key] = parent_key
        self._records[key] = entry
        logger.debug("%s: added '%s' under '%s'", self.name, key, parent_key or WILDCARD)
        return key

    def ensure(self, entry: Any, parent: Any = None) -> bool:
        """Add ``entry`` unless it is already registered.

        Returns:
            True if the entry was added, False if it already existed.
        """
        if self.has(entry):
            return False
        self.add(entry, parent)
        return True

    def remove(self, entry: Any, cascade: bool = False) -> list[str]:
        """Remove ``entry`` from the registry.

        Direct children are reparented to the entry's own parent, or, with
        ``cascade``, removed together with all their descendants.

        Returns:
            Keys removed, descendants first in depth-first order and the
            entry itself last. Reparented children are not included.

        Raises:
            NotFoundError: ``entry`` is not registered.
        """
        key = resolve_identity(entry)
        if key not in self._parents:
            raise NotFoundError(key)

        removed: list[str] = []
        children = self.children_of(key)
        if children:
            if cascade:
                removed.extend(self._remove_descendants(children))
            else:
                parent_key = self._parents[key]
                for child in children:
                    self._parents[child] = parent_key

        del self._parents[key]
        removed.append(key)

        for removed_key in removed:
            self._records.pop(removed_key, None)

        logger.debug("%s: removed %s (cascade=%s)", self.name, removed, cascade)
        return removed

    def _remove_descendants(self, children: list[str]) -> list[str]:
        removed: list[str] = []
        stack = list(reversed(children))
        while stack:
            key = stack.pop()
            grandchildren = self.children_of(key)
            del self._parents[key]
            removed.append(key)
            stack.extend(reversed(grandchildren))
        return removed

    def clear(self) -> None:
        self._parents = {}
        self._records = {}

    # ── Queries ──────────────────────────────────────────

    def has(self, entry: Any) -> bool:
        return resolve_identity(entry) in self._parents

    def has_child(self, key: str) -> bool:
        """True if any registered node has ``key`` as its parent."""
        return any(parent == key for parent in self._parents.values())

    def children_of(self, key: str) -> list[str]:
        """Direct children of ``key`` in insertion order (``ROOT`` for top level)."""
        return [child for child, parent in self._parents.items() if parent == key]

    def parent_of(self, entry: Any) -> str:
        """Parent key of ``entry``; ``ROOT`` when attached to the wildcard."""
        key = resolve_identity(entry)
        try:
            return self._parents[key]
        except KeyError:
            raise NotFoundError(key) from None

    def get_record(self, entry: Any) -> Any:
        """The value ``entry`` was registered with, or None if unregistered."""
        return self._records.get(resolve_identity(entry))

    def ancestor_path(self, entry: Any) -> list[str]:
        """Keys from ``entry`` up to and including the wildcard.

        An absent or unregistered entry yields ``["*"]`` only; the entry's
        own key is included only when it is registered.
        """
        path: list[str] = []
        if not entry:
            path.append(WILDCARD)
            return path

        key = resolve_identity(entry)
        while key in self._parents:
            path.append(key)
            key = self._parents[key]
        path.append(WILDCARD)
        return path

    def keys(self) -> list[str]:
        return list(self._parents)

    def size(self) -> int:
        return len(self._parents)

    def __len__(self) -> int:
        return len(self._parents)

    def __contains__(self, entry: Any) -> bool:
        return bool(entry) and self.has(entry)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._parents))

    # ── Export / Import ──────────────────────────────────

    def export(self) -> dict[str, dict[str, Any]]:
        """Plain-data copy: ``{"records": {...}, "registry": {...}}``.

        Object records are flattened to dicts, so their type is not kept.
        """
        return {
            "records": {key: _plain(value) for key, value in self._records.items()},
            "registry": dict(self._parents),
        }

    def import_(
        self,
        data: dict[str, Any] | RegistrySnapshot,
        record_factory: Optional[Callable[[dict[str, Any]], Any]] = None,
    ) -> None:
        """Load an exported registry into this (empty) registry.

        Args:
            data: Output of :meth:`export`.
            record_factory: Called with each mapping record to rebuild typed
                values. String records are kept as-is.

        Raises:
            RegistryNotEmptyError: the registry already holds entries.
            SnapshotError: ``data`` is malformed.
        """
        if self._parents:
            raise RegistryNotEmptyError(self.name)
        if not isinstance(data, RegistrySnapshot):
            data = validate_snapshot(RegistrySnapshot, data)

        records: dict[str, Any] = {}
        for key, value in data.records.items():
            if record_factory is not None and isinstance(value, dict):
                value = record_factory(dict(value))
            records[key] = value
        self._parents = dict(data.registry)
        self._records = records
        logger.debug("%s: imported %d entries", self.name, len(self._parents))

    # ── Display ──────────────────────────────────────────

    def display(self, leading: str = "", key: str = ROOT) -> str:
        """Indented tree of the entries below ``key`` (default: whole registry)."""
        lines: list[str] = []
        for child in self.children_of(key):
            record = self._records.get(child, child)
            lines.append(f"{leading}- {record}\n")
            lines.append(self.display(" " + leading, child))
        return "".join(lines)

    @staticmethod
    def display_path(path: list[str]) -> str:
        """Render an ancestor path, e.g. ``- -> editor -> staff -> * <``."""
        return "-" + "".join(f" -> {key}" for key in path) + " <"

    def __str__(self) -> str:
        width = max((len(key) for key in self._parents), default=0)
        return "".join(
            f"\t{key.rjust(width)} - {parent or WILDCARD}\n" for key, parent in self._parents.items()
        )

    def __repr__(self) -> str:
        return f"Registry(name={self.name!r}, size={len(self._parents)})"


def _plain(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, BaseModel):
        return value.model_dump()
    if isinstance(value, dict):
        return dict(value)
    if hasattr(value, "__dict__"):
        return dict(vars(value))
    return str(value)


__all__ = ["Registry"]
