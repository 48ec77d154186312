"""Access evaluation over role and resource hierarchies.

``Acl`` ties together a role :class:`Registry`, a resource
:class:`Registry` and a :class:`PermissionMatrix`. Evaluation walks the
ancestor path of the role (outer loop) and of the resource (inner loop),
most specific first, and returns the first definitive verdict. When every
tuple along the way is unspecified the answer is ``False``.

Example::

    acl = new_acl()
    acl.add_role("staff")
    acl.add_role("editor", "staff")
    acl.add_resource("site")
    acl.add_resource("page", "site")

    acl.allow("staff", "site", Action.READ)
    acl.is_allowed("editor", "page", Action.READ)    # True (inherited)
    acl.is_allowed("editor", "page", Action.DELETE)  # False (default deny)
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from .config import TRACE_LEVEL_1, AclConfig
from .exceptions import NullInputError, RegistryNotEmptyError
from .identity import resolve_identity
from .logging import get_acl_logger
from .models import AclSnapshot, validate_snapshot
from .permissions.constants import WILDCARD, Action
from .permissions.matrix import PermissionMatrix
from .registry import Registry

logger = get_acl_logger(__name__)

RecordFactory = Callable[[dict[str, Any]], Any]


class Acl:
    """Role/resource registries plus the permission matrix.

    Args:
        permissions: Permission matrix.
        resources: Resource hierarchy.
        roles: Role hierarchy.
        config: Optional settings; ``trace_level`` is applied to the matrix.
    """

    def __init__(
        self,
        permissions: PermissionMatrix,
        resources: Registry,
        roles: Registry,
        config: Optional[AclConfig] = None,
    ) -> None:
        self.permissions = permissions
        self.resources = resources
        self.roles = roles
        if config is not None:
            self.permissions.trace_level = config.trace_level

    @property
    def trace_level(self) -> int:
        return self.permissions.trace_level

    @trace_level.setter
    def trace_level(self, level: int) -> None:
        self.permissions.trace_level = level

    # ── Registration ─────────────────────────────────────

    def add_role(self, role: Any, parent: Any = None) -> str:
        return self.roles.add(role, parent)

    def add_resource(self, resource: Any, parent: Any = None) -> str:
        return self.resources.add(resource, parent)

    def get_role(self, entry: Any) -> Any:
        """The value the role was registered with."""
        return self.roles.get_record(entry)

    def get_resource(self, entry: Any) -> Any:
        """The value the resource was registered with."""
        return self.resources.get_record(entry)

    def _register(self, role: Any, resource: Any) -> None:
        # Key check first so a rejected pair registers neither side
        self.permissions.make_key(role, resource)
        self._ensure(self.roles, role)
        self._ensure(self.resources, resource)

    @staticmethod
    def _ensure(registry: Registry, entry: Any) -> None:
        # The wildcard is implicit and never stored as a node
        if resolve_identity(entry) != WILDCARD:
            registry.ensure(entry)

    # ── Grant / Deny ─────────────────────────────────────

    def allow(self, role: Any, resource: Any, action: Optional[str] = None) -> None:
        """Register role and resource if needed, then grant ``action``."""
        self._register(role, resource)
        self.permissions.grant(role, resource, action)

    def deny(self, role: Any, resource: Any, action: Optional[str] = None) -> None:
        """Register role and resource if needed, then deny ``action``."""
        self._register(role, resource)
        self.permissions.deny(role, resource, action)

    def allow_all_resource(self, role: Any) -> None:
        """Grant ``role`` every action on every resource."""
        self._register(role, WILDCARD)
        self.permissions.grant(role, WILDCARD)

    def allow_all_role(self, resource: Any) -> None:
        """Grant every role every action on ``resource``."""
        self._register(WILDCARD, resource)
        self.permissions.grant(WILDCARD, resource)

    def deny_all_resource(self, role: Any) -> None:
        """Deny ``role`` every action on every resource."""
        self._register(role, WILDCARD)
        self.permissions.deny(role, WILDCARD)

    def deny_all_role(self, resource: Any) -> None:
        """Deny every role every action on ``resource``."""
        self._register(WILDCARD, resource)
        self.permissions.deny(WILDCARD, resource)

    def make_default_allow(self) -> None:
        self.permissions.make_default_allow()

    def make_default_deny(self) -> None:
        self.permissions.make_default_deny()

    # ── Removal ──────────────────────────────────────────

    def remove(self, role: Any, resource: Any, action: Optional[str] = None) -> None:
        """Remove a permission; see :meth:`PermissionMatrix.remove`."""
        self.permissions.remove(role, resource, action)

    def remove_role(self, role: Any, cascade: bool = False) -> list[str]:
        """Remove a role (and descendants with ``cascade``) and their permissions."""
        if role is None:
            raise NullInputError("Cannot remove null role")
        removed = self.roles.remove(role, cascade)
        count = sum(self.permissions.remove_by_role(key) for key in removed)
        logger.debug("Removed roles %s and %d permission(s)", removed, count, role=removed[-1])
        return removed

    def remove_resource(self, resource: Any, cascade: bool = False) -> list[str]:
        """Remove a resource (and descendants with ``cascade``) and their permissions."""
        if resource is None:
            raise NullInputError("Cannot remove null resource")
        removed = self.resources.remove(resource, cascade)
        count = sum(self.permissions.remove_by_resource(key) for key in removed)
        logger.debug("Removed resources %s and %d permission(s)", removed, count, resource=removed[-1])
        return removed

    def clear(self) -> None:
        """Empty the matrix and both registries, default tuple included."""
        self.permissions.clear()
        self.resources.clear()
        self.roles.clear()

    # ── Evaluation ───────────────────────────────────────

    def is_allowed(self, role: Any, resource: Any, action: Optional[str] = None) -> bool:
        """Whether ``role`` may perform ``action`` (default ``ALL``) on ``resource``.

        Every resource ancestor is tried at the current role level before a
        more general role is tried.
        """
        action = action or Action.ALL
        if action == Action.ALL:
            probe = self.permissions.is_allowed_all
        else:
            probe = lambda aro, aco: self.permissions.is_allowed(aro, aco, action)  # noqa: E731
        return self._walk("is_allowed", role, resource, action, probe)

    def is_denied(self, role: Any, resource: Any, action: Optional[str] = None) -> bool:
        """Whether ``role`` is denied ``action`` (default ``ALL``) on ``resource``."""
        action = action or Action.ALL
        if action == Action.ALL:
            probe = self.permissions.is_denied_all
        else:
            probe = lambda aro, aco: self.permissions.is_denied(aro, aco, action)  # noqa: E731
        return self._walk("is_denied", role, resource, action, probe)

    def _walk(
        self,
        name: str,
        role: Any,
        resource: Any,
        action: str,
        probe: Callable[[str, str], Optional[bool]],
    ) -> bool:
        role_path = self.roles.ancestor_path(role)
        res_path = self.resources.ancestor_path(resource)

        if self.trace_level >= TRACE_LEVEL_1:
            logger.debug("%s - role path to root: %s", name, role_path, action=action)
            logger.debug("%s - resource path to root: %s", name, res_path, action=action)

        for aro in role_path:
            for aco in res_path:
                verdict = probe(aro, aco)
                if verdict is not None:
                    if self.trace_level >= TRACE_LEVEL_1:
                        logger.debug("%s - %s", name, verdict, role=aro, resource=aco, action=action)
                    return verdict
        return False

    def is_allowed_strict(self, role: Any, resource: Any, action: Optional[str] = None) -> bool:
        """Like :meth:`is_allowed` but only the exact role/resource tuple is checked."""
        action = action or Action.ALL
        if self.trace_level >= TRACE_LEVEL_1:
            logger.debug("is_allowed_strict", role=role, resource=resource, action=action)
        if action == Action.ALL:
            return bool(self.permissions.is_allowed_all(role, resource))
        return bool(self.permissions.is_allowed(role, resource, action))

    def is_denied_strict(self, role: Any, resource: Any, action: Optional[str] = None) -> bool:
        """Like :meth:`is_denied` but only the exact role/resource tuple is checked."""
        action = action or Action.ALL
        if self.trace_level >= TRACE_LEVEL_1:
            logger.debug("is_denied_strict", role=role, resource=resource, action=action)
        if action == Action.ALL:
            return bool(self.permissions.is_denied_all(role, resource))
        return bool(self.permissions.is_denied(role, resource, action))

    # ── Orphans ──────────────────────────────────────────

    def orphan_permissions(self) -> dict[str, list[str]] | None:
        """Keys referenced by permissions but missing from the registries.

        Returns:
            ``{"role": [...], "resource": [...]}``, or None if the matrix is
            empty.
        """
        if self.permissions.size() == 0:
            return None
        return {
            "resource": [key for key in self.permissions.resource_keys() if not self.resources.has(key)],
            "role": [key for key in self.permissions.role_keys() if not self.roles.has(key)],
        }

    def has_orphan_permissions(self) -> bool:
        orphan = self.orphan_permissions()
        if orphan is None:
            return False
        return bool(orphan["resource"] or orphan["role"])

    # ── Export / Import ──────────────────────────────────

    def export_all(self) -> dict[str, Any]:
        return {
            "permissions": self.permissions.export(),
            "resources": self.resources.export(),
            "roles": self.roles.export(),
        }

    def export_permissions(self) -> dict[str, dict[str, bool]]:
        return self.permissions.export()

    def export_resources(self) -> dict[str, dict[str, Any]]:
        return self.resources.export()

    def export_roles(self) -> dict[str, dict[str, Any]]:
        return self.roles.export()

    def import_all(
        self,
        data: dict[str, Any],
        role_factory: Optional[RecordFactory] = None,
        resource_factory: Optional[RecordFactory] = None,
    ) -> None:
        """Import the output of :meth:`export_all`.

        The whole snapshot is validated before anything is written. Each
        target must be empty (see :meth:`clear`).
        """
        snapshot = validate_snapshot(AclSnapshot, data)
        for name, target in (("permissions", self.permissions), ("resources", self.resources), ("roles", self.roles)):
            if target.size():
                raise RegistryNotEmptyError(name)
        self.import_permissions(snapshot.permissions)
        self.import_resources(snapshot.resources, resource_factory)
        self.import_roles(snapshot.roles, role_factory)

    def import_permissions(self, permissions: Any) -> None:
        self.permissions.import_(permissions)

    def import_resources(self, resources: Any, resource_factory: Optional[RecordFactory] = None) -> None:
        self.resources.import_(resources, resource_factory)

    def import_roles(self, roles: Any, role_factory: Optional[RecordFactory] = None) -> None:
        self.roles.import_(roles, role_factory)

    # ── Display ──────────────────────────────────────────

    def visualize_permissions(self) -> str:
        return str(self.permissions)

    def visualize_resources(self) -> str:
        return self.resources.display()

    def visualize_roles(self) -> str:
        return self.roles.display()

    def __str__(self) -> str:
        return f"{self.roles}\n{self.resources}\n{self.permissions}\n"

    def __repr__(self) -> str:
        return f"Acl(roles={len(self.roles)}, resources={len(self.resources)}, permissions={len(self.permissions)})"


def new_acl(config: Optional[AclConfig] = None) -> Acl:
    """Create an Acl with empty registries and a default-deny matrix.

    ``config.default_allow`` seeds the default tuple with allow instead.
    """
    config = config or AclConfig()
    permissions = PermissionMatrix(default_allow=config.default_allow, trace_level=config.trace_level)
    logger.debug("New Acl (default_allow=%s)", config.default_allow)
    return Acl(permissions, Registry("resources"), Registry("roles"), config)


__all__ = ["Acl", "new_acl"]
