"""Identity extraction for roles and resources.

Roles and resources may be passed as plain strings or as arbitrary objects.
An object's key is taken from the first strategy in
:data:`IDENTITY_STRATEGIES` that yields a string:

1. ``get_id()``: zero-argument method returning a non-empty ``str``
2. ``id``: attribute holding a non-empty ``str``
3. ``str(value)``: default string conversion

The order is part of the public contract: an object exposing both
``get_id()`` and ``id`` is keyed by ``get_id()``. A key is never empty.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Sequence

from .exceptions import NullInputError

IdentityStrategy = Callable[[Any], Optional[str]]


def from_accessor(value: Any) -> str | None:
    """Use ``value.get_id()`` when it is callable and returns a string."""
    getter = getattr(value, "get_id", None)
    if callable(getter):
        ident = getter()
        if isinstance(ident, str) and ident:
            return ident
    return None


def from_field(value: Any) -> str | None:
    """Use ``value.id`` when it is a string."""
    ident = getattr(value, "id", None)
    if isinstance(ident, str) and ident:
        return ident
    return None


def from_str(value: Any) -> str:
    return str(value)


IDENTITY_STRATEGIES: tuple[IdentityStrategy, ...] = (
    from_accessor,
    from_field,
    from_str,
)


class IdentityResolver:
    """Resolve a role/resource representation to its string key.

    Args:
        strategies: Ordered extraction strategies. Each returns a string key
            or ``None`` to defer to the next one.
    """

    __slots__ = ("strategies",)

    def __init__(self, strategies: Sequence[IdentityStrategy] = IDENTITY_STRATEGIES) -> None:
        self.strategies = tuple(strategies)

    def __call__(self, value: Any) -> str:
        return self.resolve(value)

    def resolve(self, value: Any) -> str:
        """Return the key for ``value``.

        Raises:
            NullInputError: ``value`` is ``None`` or falsy, or no strategy
                produced a non-empty key.
        """
        if not value:
            raise NullInputError()
        if isinstance(value, str):
            return value
        for strategy in self.strategies:
            ident = strategy(value)
            if isinstance(ident, str) and ident:
                return ident
        raise NullInputError(f"No identity strategy matched {type(value).__name__}")

    def __repr__(self) -> str:
        names = ", ".join(s.__name__ for s in self.strategies)
        return f"IdentityResolver(strategies=({names}))"


default_resolver = IdentityResolver()


def resolve_identity(value: Any) -> str:
    """Resolve ``value`` with the default strategy order."""
    return default_resolver.resolve(value)


__all__ = [
    "IDENTITY_STRATEGIES",
    "IdentityResolver",
    "IdentityStrategy",
    "default_resolver",
    "from_accessor",
    "from_field",
    "from_str",
    "resolve_identity",
]
