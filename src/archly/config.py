"""Configuration contract for archly.

Pydantic-validated settings for an access-control engine instance: log
format, debug trace depth and the seed value of the default permission.

Direct os.environ/os.getenv usage is limited to
:func:`load_config_from_env`; everything else receives an ``AclConfig``.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, ValidationError, field_validator

from .exceptions import ConfigurationError

TRACE_LEVEL_0 = 0  # Tracing off
TRACE_LEVEL_1 = 1  # Ancestor paths used by evaluation
TRACE_LEVEL_2 = 2  # Per-tuple verdict decisions
TRACE_LEVEL_3 = 3  # Grant/deny calls
TRACE_LEVEL_4 = 4  # New vs. existing tuple detail

_TRUTHY = ("true", "1", "yes", "on")


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AclConfig(BaseModel):
    """Settings for an :class:`~archly.acl.Acl` instance.

    Environment variables (see :func:`load_config_from_env`):
        ARCHLY_LOG_LEVEL      : DEBUG, INFO, WARNING, ERROR, CRITICAL
        ARCHLY_LOG_JSON       : JSON log format (true/false)
        ARCHLY_TRACE_LEVEL    : debug trace depth 0..4
        ARCHLY_DEFAULT_ALLOW  : seed ``*::*`` with allow instead of deny
    """

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )
    trace_level: int = Field(
        default=TRACE_LEVEL_0,
        ge=TRACE_LEVEL_0,
        le=TRACE_LEVEL_4,
        description="Debug trace depth for permission evaluation (0 = off)",
    )
    default_allow: bool = Field(
        default=False,
        description="Seed the default *::* permission with allow-all",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    model_config = {
        "extra": "forbid",
    }


def load_config_from_env() -> AclConfig:
    """Load configuration from environment variables.

    This is the ONLY place where os.getenv is allowed.

    Returns:
        AclConfig instance with values from environment or defaults.

    Raises:
        ConfigurationError: a variable holds an invalid value.
    """
    import os

    trace_level = os.getenv("ARCHLY_TRACE_LEVEL", "0")
    try:
        return AclConfig(
            log_level=os.getenv("ARCHLY_LOG_LEVEL", "INFO"),
            log_json=os.getenv("ARCHLY_LOG_JSON", "false").lower() in _TRUTHY,
            trace_level=int(trace_level),
            default_allow=os.getenv("ARCHLY_DEFAULT_ALLOW", "false").lower() in _TRUTHY,
        )
    except ValidationError as e:
        raise ConfigurationError(f"Invalid archly configuration: {e.error_count()} error(s)", errors=e.errors()) from e
    except ValueError as e:
        raise ConfigurationError(f"Invalid ARCHLY_TRACE_LEVEL: {trace_level!r}") from e


__all__ = [
    "AclConfig",
    "LogLevel",
    "TRACE_LEVEL_0",
    "TRACE_LEVEL_1",
    "TRACE_LEVEL_2",
    "TRACE_LEVEL_3",
    "TRACE_LEVEL_4",
    "load_config_from_env",
]
