# permissions must load before models/registry: models reads its constants
from .permissions import ROOT, SEP, WILDCARD, Action, PermissionMatrix
from .config import AclConfig, LogLevel, load_config_from_env
from .exceptions import (
    ArchlyError,
    ConfigurationError,
    DuplicateEntryError,
    InvalidActionError,
    InvalidKeyError,
    NotFoundError,
    NullInputError,
    RegistryNotEmptyError,
    SnapshotError,
    error_registry,
    register_error,
)
from .identity import IDENTITY_STRATEGIES, IdentityResolver, resolve_identity
from .logging import AclFormatter, AclLoggerAdapter, get_acl_logger, safe_preview, setup_logging
from .models import AclSnapshot, MatrixSnapshot, RegistrySnapshot
from .registry import Registry
from .acl import Acl, new_acl

VERSION = "1.0.0"

__all__ = [
    'Acl',
    'AclConfig',
    'AclFormatter',
    'AclLoggerAdapter',
    'AclSnapshot',
    'Action',
    'ArchlyError',
    'ConfigurationError',
    'DuplicateEntryError',
    'IDENTITY_STRATEGIES',
    'IdentityResolver',
    'InvalidActionError',
    'InvalidKeyError',
    'LogLevel',
    'MatrixSnapshot',
    'NotFoundError',
    'NullInputError',
    'PermissionMatrix',
    'ROOT',
    'Registry',
    'RegistryNotEmptyError',
    'RegistrySnapshot',
    'SEP',
    'SnapshotError',
    'VERSION',
    'WILDCARD',
    'error_registry',
    'get_acl_logger',
    'load_config_from_env',
    'new_acl',
    'register_error',
    'resolve_identity',
    'safe_preview',
    'setup_logging',
]
