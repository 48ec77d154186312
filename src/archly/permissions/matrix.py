"""Tri-state permission matrix keyed by ``role::resource`` tuples.

Each tuple holds a verdict map of action → bool. A missing action is
*unspecified* (``None`` in query results), which is distinct from an
explicit deny. ``ALL`` answers for any concrete action that has no verdict
of its own.

Example::

    matrix = PermissionMatrix()
    matrix.grant("editor", "page")                 # ALL → True
    matrix.deny("editor", "page", Action.DELETE)   # DELETE → False

    matrix.is_allowed("editor", "page", Action.READ)    # True (via ALL)
    matrix.is_allowed("editor", "page", Action.DELETE)  # False
    matrix.is_allowed_all("editor", "page")             # False
    matrix.is_allowed("viewer", "page", Action.READ)    # None
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional

from ..config import TRACE_LEVEL_0, TRACE_LEVEL_2, TRACE_LEVEL_3, TRACE_LEVEL_4
from ..exceptions import InvalidActionError, InvalidKeyError, NotFoundError, RegistryNotEmptyError
from ..identity import resolve_identity
from ..models import MatrixSnapshot, validate_snapshot
from .constants import SEP, WILDCARD, Action

logger = logging.getLogger(__name__)

Verdicts = dict[str, bool]


class PermissionMatrix:
    """Sparse map of ``role::resource`` tuples to per-action verdicts.

    The default tuple ``*::*`` is seeded with ``ALL → False`` on
    construction (or ``ALL → True`` with ``default_allow``).
    """

    DEFAULT_KEY = WILDCARD + SEP + WILDCARD
    DEFAULT_ACTION = Action.ALL

    def __init__(self, *, default_allow: bool = False, trace_level: int = TRACE_LEVEL_0) -> None:
        self._perms: dict[str, Verdicts] = {}
        self.trace_level = trace_level
        if default_allow:
            self.make_default_allow()
        else:
            self.make_default_deny()

    # ── Keys ─────────────────────────────────────────────

    @staticmethod
    def make_key(role: Any, resource: Any) -> str:
        """Build ``role::resource``; falsy sides become the wildcard.

        Raises:
            InvalidKeyError: either side contains the separator.
        """
        role_id = resolve_identity(role) if role else WILDCARD
        res_id = resolve_identity(resource) if resource else WILDCARD
        for name, ident in (("role", role_id), ("resource", res_id)):
            if SEP in ident:
                raise InvalidKeyError(name, f"Must not contain '{SEP}'", value=ident)
        return role_id + SEP + res_id

    @staticmethod
    def separate_key(key: str) -> tuple[str, str]:
        """Split ``role::resource`` into ``(role, resource)``.

        Raises:
            InvalidKeyError: the key does not have exactly two components.
        """
        parts = key.split(SEP)
        if len(parts) != 2:
            raise InvalidKeyError("key", f'Must have the form "{{string}}{SEP}{{string}}"', value=key)
        return parts[0], parts[1]

    def separate_keys(self) -> dict[str, list[str]]:
        """Role and resource components of every tuple, in tuple order."""
        keys: dict[str, list[str]] = {"role": [], "resource": []}
        for key in self._perms:
            role, resource = self.separate_key(key)
            keys["role"].append(role)
            keys["resource"].append(resource)
        return keys

    def role_keys(self) -> list[str]:
        """Unique role keys referenced by tuples, wildcard excluded."""
        return _unique(self.separate_keys()["role"])

    def resource_keys(self) -> list[str]:
        """Unique resource keys referenced by tuples, wildcard excluded."""
        return _unique(self.separate_keys()["resource"])

    def has(self, key: str) -> bool:
        return key in self._perms

    def size(self) -> int:
        return len(self._perms)

    def __len__(self) -> int:
        return len(self._perms)

    # ── Grant / Deny ─────────────────────────────────────

    def grant(self, role: Any, resource: Any, action: Optional[str] = None) -> None:
        """Allow ``action`` (default ``ALL``) for role on resource.

        Other actions on the same tuple are left untouched.
        """
        self._set(role, resource, action, True)

    def deny(self, role: Any, resource: Any, action: Optional[str] = None) -> None:
        """Deny ``action`` (default ``ALL``) for role on resource.

        Other actions on the same tuple are left untouched.
        """
        self._set(role, resource, action, False)

    def _set(self, role: Any, resource: Any, action: Optional[str], allow: bool) -> None:
        action = _check_action(action)
        key = self.make_key(role, resource)

        if self.trace_level >= TRACE_LEVEL_3:
            logger.debug("%s '%s' on action '%s'", "Grant" if allow else "Deny", key, action)

        perm = self._perms.get(key)
        if perm is None:
            self._perms[key] = {action: allow}
            if self.trace_level >= TRACE_LEVEL_4:
                logger.debug("Setting new key '%s': %s", key, self._perms[key])
        else:
            perm[action] = allow
            if self.trace_level >= TRACE_LEVEL_4:
                logger.debug("Setting existing key '%s': %s", key, perm)

    def make_default_allow(self) -> None:
        self._perms[self.DEFAULT_KEY] = {self.DEFAULT_ACTION: True}

    def make_default_deny(self) -> None:
        self._perms[self.DEFAULT_KEY] = {self.DEFAULT_ACTION: False}

    # ── Queries ──────────────────────────────────────────

    def is_allowed_all(self, role: Any, resource: Any) -> bool | None:
        """Whether the tuple allows every action.

        Returns:
            False if any verdict on the tuple is a deny. True if ``ALL`` is
            present, or all four concrete actions are. None otherwise,
            including when only some concrete actions are set.
        """
        return self._aggregate(role, resource, allow=True)

    def is_denied_all(self, role: Any, resource: Any) -> bool | None:
        """Whether the tuple denies every action.

        Returns:
            False if any verdict on the tuple is an allow. True if ``ALL`` is
            present, or all four concrete actions are. None otherwise.
        """
        return self._aggregate(role, resource, allow=False)

    def _aggregate(self, role: Any, resource: Any, allow: bool) -> bool | None:
        key = self.make_key(role, resource)
        name = "is_allowed_all" if allow else "is_denied_all"
        perm = self._perms.get(key)
        if perm is None:
            self._trace("Key '%s' not in permissions for %s - returns None", key, name)
            return None

        concrete = 0
        for action, value in perm.items():
            if value is not allow:
                self._trace("Permission '%s' on key '%s' is %s - returns False for %s", action, key, value, name)
                return False
            if action != Action.ALL:
                concrete += 1

        # A contrary ALL would have been caught in the scan
        if Action.ALL in perm:
            self._trace("Permission '%s' on key '%s' is present - returns True for %s", Action.ALL, key, name)
            return True
        if concrete == len(Action.CONCRETE):
            self._trace("All concrete permissions on key '%s' agree - returns True for %s", key, name)
            return True

        self._trace("Partial permissions on key '%s' - returns None for %s", key, name)
        return None

    def is_allowed(self, role: Any, resource: Any, action: str) -> bool | None:
        """Verdict for ``action``, falling back to ``ALL``; None if neither is set."""
        return self._lookup(role, resource, action, allow=True)

    def is_denied(self, role: Any, resource: Any, action: str) -> bool | None:
        """Negated verdict for ``action``, falling back to ``ALL``; None if neither is set."""
        return self._lookup(role, resource, action, allow=False)

    def _lookup(self, role: Any, resource: Any, action: str, allow: bool) -> bool | None:
        key = self.make_key(role, resource)
        name = "is_allowed" if allow else "is_denied"
        perm = self._perms.get(key)
        if perm is None:
            self._trace("Key '%s' not in permissions for %s on '%s' - returns None", key, name, action)
            return None

        if action in perm:
            value = perm[action]
        elif Action.ALL in perm:
            value = perm[Action.ALL]
            self._trace("Permission '%s' on key '%s' falls back to '%s'", action, key, Action.ALL)
        else:
            self._trace("Permission '%s' and '%s' on key '%s' are unset - returns None", action, Action.ALL, key)
            return None

        result = value if allow else not value
        self._trace("Returns %s on key '%s' for %s on '%s'", result, key, name, action)
        return result

    def _trace(self, msg: str, *args: Any) -> None:
        if self.trace_level >= TRACE_LEVEL_2:
            logger.debug(msg, *args)

    # ── Removal ──────────────────────────────────────────

    def remove(self, role: Any, resource: Any, action: Optional[str] = None) -> None:
        """Remove the verdict for ``action`` (default ``ALL``) on the tuple.

        Removing ``ALL`` drops the whole tuple. Removing a concrete action
        that is only implied by ``ALL`` first writes the ``ALL`` verdict into
        the other three concrete actions, then drops ``ALL``; the removed
        action becomes unspecified. A tuple left without verdicts is dropped.

        Raises:
            NotFoundError: the tuple does not exist, or the action is set
                neither directly nor through ``ALL``.
        """
        action = _check_action(action)
        key = self.make_key(role, resource)
        perm = self._perms.get(key)
        if perm is None:
            raise NotFoundError(key, f"Permission '{key}' not found.", action=action)

        if action in perm:
            if action == Action.ALL:
                del self._perms[key]
                return
            del perm[action]
        elif Action.ALL in perm:
            implied = perm.pop(Action.ALL)
            for other in Action.CONCRETE:
                if other != action:
                    perm[other] = implied
        elif action == Action.ALL:
            del self._perms[key]
            return
        else:
            raise NotFoundError(key, f"Permission '{action}' not found on '{key}'.", action=action)

        if not perm:
            del self._perms[key]

    def remove_by_role(self, role_key: str) -> int:
        """Drop every tuple whose role is ``role_key``; returns the count."""
        prefix = role_key + SEP
        return self._remove_where(lambda key: key.startswith(prefix))

    def remove_by_resource(self, resource_key: str) -> int:
        """Drop every tuple whose resource is ``resource_key``; returns the count."""
        suffix = SEP + resource_key
        return self._remove_where(lambda key: key.endswith(suffix))

    def _remove_where(self, match: Callable[[str], bool]) -> int:
        doomed = [key for key in self._perms if match(key)]
        for key in doomed:
            del self._perms[key]
        return len(doomed)

    def clear(self) -> None:
        """Remove all tuples, the default tuple included."""
        self._perms = {}

    # ── Export / Import ──────────────────────────────────

    def export(self) -> dict[str, Verdicts]:
        """Deep copy of the matrix: ``{"role::resource": {action: bool}}``."""
        return {key: dict(perm) for key, perm in self._perms.items()}

    def import_(self, data: dict[str, dict[str, bool]] | MatrixSnapshot) -> None:
        """Load an exported matrix into this (empty) matrix.

        Raises:
            RegistryNotEmptyError: the matrix holds any tuple.
            SnapshotError: ``data`` is malformed.
        """
        if self._perms:
            raise RegistryNotEmptyError("permissions")
        if not isinstance(data, MatrixSnapshot):
            data = validate_snapshot(MatrixSnapshot, data)
        self._perms = {key: dict(perm) for key, perm in data.root.items()}
        logger.debug("permissions: imported %d tuples", len(self._perms))

    def __str__(self) -> str:
        out = [f"Size: {self.size()}\n-------\n"]
        for key, perm in self._perms.items():
            out.append(f"- {key}\n")
            out.extend(f"\t{action}\t{value}\n" for action, value in perm.items())
        return "".join(out)

    def __repr__(self) -> str:
        return f"PermissionMatrix(size={len(self._perms)})"


def _check_action(action: Optional[str]) -> str:
    if not action:
        return PermissionMatrix.DEFAULT_ACTION
    if action not in Action.VALUES:
        raise InvalidActionError("action", f"Must be one of {sorted(Action.VALUES)}", value=action)
    return action


def _unique(keys: list[str]) -> list[str]:
    return [key for key in dict.fromkeys(keys) if key != WILDCARD]


__all__ = ["PermissionMatrix", "Verdicts"]
