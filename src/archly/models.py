"""Snapshot models for exported registries and permission matrices.

These are Pydantic models used to validate plain data before it is
imported back into a :class:`~archly.registry.Registry` or
:class:`~archly.permissions.matrix.PermissionMatrix`.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, Field, RootModel, StrictBool, ValidationError, field_validator, model_validator

from .exceptions import SnapshotError
from .permissions.constants import ROOT, SEP, WILDCARD, Action

_M = TypeVar("_M", bound=BaseModel)


class RegistrySnapshot(BaseModel):
    """Exported registry: ``records`` (stored values) and ``registry`` (parents).

    A parent of ``""`` attaches the key directly to the wildcard root.
    """

    records: dict[str, Any] = Field(default_factory=dict)
    registry: dict[str, str] = Field(default_factory=dict)

    @model_validator(mode="after")
    def check_forest(self) -> "RegistrySnapshot":
        """Every parent must be registered and no key may reach itself."""
        parents = self.registry
        if WILDCARD in parents:
            raise ValueError(f"'{WILDCARD}' cannot be a registry key")
        for key in parents:
            if not key or SEP in key:
                raise ValueError(f"Registry key '{key}' must be non-empty and free of '{SEP}'")
        for key, parent in parents.items():
            if parent != ROOT and parent not in parents:
                raise ValueError(f"Parent '{parent}' of '{key}' is not in registry")
        for key in parents:
            seen = {key}
            current = parents[key]
            while current != ROOT:
                if current in seen:
                    raise ValueError(f"Cycle detected at '{key}'")
                seen.add(current)
                current = parents[current]
        return self


class MatrixSnapshot(RootModel[dict[str, dict[str, StrictBool]]]):
    """Exported permission matrix: ``{"role::resource": {action: bool}}``."""

    @field_validator("root")
    @classmethod
    def check_keys(cls, v: dict[str, dict[str, bool]]) -> dict[str, dict[str, bool]]:
        for key, verdicts in v.items():
            if len(key.split(SEP)) != 2:
                raise ValueError(f"Tuple key '{key}' must have the form '<role>{SEP}<resource>'")
            unknown = set(verdicts) - Action.VALUES
            if unknown:
                raise ValueError(f"Unknown actions {sorted(unknown)} on '{key}'")
        return v


class AclSnapshot(BaseModel):
    """Full export of an Acl: permissions plus both registries."""

    permissions: MatrixSnapshot = Field(default_factory=lambda: MatrixSnapshot({}))
    resources: RegistrySnapshot = Field(default_factory=RegistrySnapshot)
    roles: RegistrySnapshot = Field(default_factory=RegistrySnapshot)


def validate_snapshot(model: type[_M], data: Any) -> _M:
    """Validate ``data`` against ``model``, raising :class:`SnapshotError`."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise SnapshotError(f"Invalid {model.__name__}: {e.error_count()} error(s)", errors=e.errors()) from e


__all__ = [
    "AclSnapshot",
    "MatrixSnapshot",
    "RegistrySnapshot",
    "validate_snapshot",
]
