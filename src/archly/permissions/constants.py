"""Action names and key sentinels for archly.

Provides:
- ``Action``: the closed action set (``ALL`` plus four concrete actions).
- ``WILDCARD``: implicit common ancestor of every hierarchy.
- ``ROOT``: parent value of nodes attached directly to the wildcard.
- ``SEP``: separator of ``role::resource`` tuple keys.
"""

from __future__ import annotations

WILDCARD = "*"
ROOT = ""
SEP = "::"


class Action:
    """Closed set of actions a permission may be declared for.

    ``ALL`` is a fallback: it answers for any concrete action that has no
    verdict of its own. It does not imply the concrete keys exist.
    """

    ALL = "ALL"
    CREATE = "CREATE"
    READ = "READ"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    CONCRETE = ("CREATE", "READ", "UPDATE", "DELETE")
    VALUES = frozenset({"ALL", "CREATE", "READ", "UPDATE", "DELETE"})


__all__ = [
    "Action",
    "ROOT",
    "SEP",
    "WILDCARD",
]
