"""Unified exception hierarchy for archly.

All errors inherit from ArchlyError. This module provides:
- Base exception hierarchy with stable error codes
- ErrorRegistry for mapping codes back to exception classes

Usage:
    from archly.exceptions import (
        ArchlyError,
        DuplicateEntryError,
        NotFoundError,
    )

Hosts may define thin subclasses for their own failures:
    @register_error("MY_ACL_ERROR")
    class MyAclError(ArchlyError):
        code = "MY_ACL_ERROR"
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar, cast

__all__ = [
    # Base hierarchy
    "ArchlyError",
    "ConfigurationError",
    "NullInputError",
    "DuplicateEntryError",
    "NotFoundError",
    "InvalidKeyError",
    "InvalidActionError",
    "RegistryNotEmptyError",
    "SnapshotError",
    # Registry
    "ErrorRegistry",
    "error_registry",
    "register_error",
]


# ---- Exception Hierarchy ----------------------------------------------------


class ArchlyError(Exception):
    """Base exception for all archly errors.

    Attributes:
        code: Stable error code string (e.g. "NOT_FOUND").
        message: Human-readable error description.
        details: Additional context as keyword arguments.
    """

    code: str = "INTERNAL_ERROR"
    message: str = "An internal error occurred"

    def __init__(self, message: str | None = None, code: str | None = None, **kwargs: Any) -> None:
        self.message = message or self.message
        self.code = code or self.code
        self.details = kwargs
        super().__init__(self.message)


class ConfigurationError(ArchlyError):
    """Invalid or missing configuration."""

    code: str = "CONFIGURATION_ERROR"


class NullInputError(ArchlyError):
    """An identity-bearing parameter was absent or falsy."""

    code: str = "NULL_INPUT"
    message: str = "Identity value must not be empty"


class DuplicateEntryError(ArchlyError):
    """The key is already present in the registry."""

    code: str = "DUPLICATE_ENTRY"

    def __init__(self, key: str, **kwargs: Any) -> None:
        super().__init__(f"Entry '{key}' is already in the registry.", key=key, **kwargs)
        self.key = key


class NotFoundError(ArchlyError):
    """A parent, entry, permission tuple or action does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, key: str, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message or f"Entry '{key}' is not in registry.", key=key, **kwargs)
        self.key = key


class InvalidKeyError(ArchlyError):
    """A composite value could not be decomposed as expected."""

    code: str = "INVALID_KEY"

    def __init__(self, name: str, reason: str, **kwargs: Any) -> None:
        super().__init__(f"Invalid value for '{name}'. {reason}", name=name, **kwargs)
        self.name = name
        self.reason = reason


class InvalidActionError(InvalidKeyError):
    """Action name outside the closed action set."""

    code: str = "INVALID_ACTION"


class RegistryNotEmptyError(ArchlyError):
    """Import target already holds data; imports never merge."""

    code: str = "NOT_EMPTY"

    def __init__(self, target: str, **kwargs: Any) -> None:
        super().__init__(f"{target} registry is not empty", target=target, **kwargs)
        self.target = target


class SnapshotError(ArchlyError):
    """Exported data does not have the expected shape."""

    code: str = "SNAPSHOT_ERROR"


# ---- Error Registry ---------------------------------------------------------

_E = TypeVar("_E", bound=type[ArchlyError])


class ErrorRegistry:
    """Registry for mapping error codes to exception classes."""

    def __init__(self) -> None:
        self._errors: dict[str, type[ArchlyError]] = {}

    def register(self, code: str, error_cls: type[ArchlyError]) -> None:
        self._errors[code] = error_cls

    def get(self, code: str) -> type[ArchlyError] | None:
        return self._errors.get(code)

    def all(self) -> dict[str, type[ArchlyError]]:
        return dict(self._errors)


error_registry = ErrorRegistry()


def register_error(code: str) -> Callable[[_E], _E]:
    """Decorator to register a custom error type.

    Usage:
        @register_error("MY_CUSTOM_ERROR")
        class MyCustomError(ArchlyError):
            code = "MY_CUSTOM_ERROR"
    """

    def decorator(cls: _E) -> _E:
        error_registry.register(code, cls)
        return cls

    return cast(Callable[[_E], _E], decorator)


# Register base errors
for _cls in (
    ArchlyError,
    ConfigurationError,
    NullInputError,
    DuplicateEntryError,
    NotFoundError,
    InvalidKeyError,
    InvalidActionError,
    RegistryNotEmptyError,
    SnapshotError,
):
    error_registry.register(_cls.code, _cls)
del _cls
