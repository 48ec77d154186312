"""Permission matrix and action constants.

Defines:
- Action: closed action set (ALL, CREATE, READ, UPDATE, DELETE)
- WILDCARD / ROOT / SEP: key sentinels
- PermissionMatrix: tri-state role::resource → action verdicts
"""

from .constants import ROOT, SEP, WILDCARD, Action
from .matrix import PermissionMatrix

__all__ = [
    "Action",
    "PermissionMatrix",
    "ROOT",
    "SEP",
    "WILDCARD",
]
