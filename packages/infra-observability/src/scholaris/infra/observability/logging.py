"""Structured logging configuration using structlog.

Application modules log through the standard library
(``logging.getLogger(__name__)``) with snake_case event names and
``extra=`` context. :func:`configure_logging` routes those records through
the same structlog processor chain as native structlog loggers, so every
line carries the request id, trace ids and redacted context regardless of
which API produced it.

Usage:
    # During application startup
    from scholaris.infra.observability.logging import configure_logging
    configure_logging()

    # In application code
    import logging
    logger = logging.getLogger(__name__)
    logger.info("academy_provisioned", extra={"subdomain": "acme"})
"""

from __future__ import annotations

import logging
import sys
from functools import lru_cache
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from collections.abc import MutableMapping

Processor = structlog.types.Processor

# Field names whose values never reach log output.
SENSITIVE_FIELDS: frozenset[str] = frozenset(
    {
        "password",
        "admin_password",
        "token",
        "access_token",
        "refresh_token",
        "authorization",
        "apikey",
        "api_key",
        "service_key",
        "secret",
        "credential",
    }
)

REDACTED_VALUE: str = "***REDACTED***"

_VALID_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


class LoggingSettings(BaseSettings):
    """Logging configuration settings from environment variables.

    Environment variables:
    - LOG_LEVEL: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: development, staging, production or test

    Example:
        >>> LoggingSettings(environment="production").use_json_logs
        True
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )

    log_level: str = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Minimum log level to output",
    )
    environment: str = Field(
        default="development",
        alias="ENVIRONMENT",
        description="Environment name for format selection",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: Any) -> str:
        return v.upper() if isinstance(v, str) else str(v)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        if v not in _VALID_LEVELS:
            msg = f"log_level must be one of {sorted(_VALID_LEVELS)}"
            raise ValueError(msg)
        return v

    @property
    def use_json_logs(self) -> bool:
        """JSON in production, human-readable console output elsewhere."""
        return self.environment == "production"

    @property
    def log_level_int(self) -> int:
        return getattr(logging, self.log_level, logging.INFO)


def _is_sensitive(key: str) -> bool:
    key_lower = key.lower()
    if key_lower in SENSITIVE_FIELDS:
        return True
    # Compound names such as ``user_password`` or ``auth_token``.
    return "password" in key_lower or "token" in key_lower


def _redact(value: Any) -> Any:
    if isinstance(value, dict):
        return {
            k: REDACTED_VALUE if isinstance(k, str) and _is_sensitive(k) else _redact(v)
            for k, v in value.items()
        }
    return value


class SensitiveDataProcessor:
    """Structlog processor that redacts sensitive fields, including nested dicts.

    Provisioning payloads are logged as dicts, so redaction descends into
    mapping values as well as top-level keys.

    Example:
        >>> processor = SensitiveDataProcessor()
        >>> processor(None, "info", {"payload": {"admin_password": "x"}})
        {'payload': {'admin_password': '***REDACTED***'}}
    """

    def __call__(
        self,
        logger: Any,
        method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        for key in list(event_dict.keys()):
            if _is_sensitive(key):
                event_dict[key] = REDACTED_VALUE
            else:
                event_dict[key] = _redact(event_dict[key])
        return event_dict


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    """Get cached LoggingSettings instance.

    Clear cache with ``get_logging_settings.cache_clear()`` for testing.
    """
    return LoggingSettings()


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        SensitiveDataProcessor(),
    ]


def configure_logging(settings: LoggingSettings | None = None) -> None:
    """Configure structlog and bridge standard-library logging into it.

    Installs a single stream handler on the root logger whose
    ``ProcessorFormatter`` runs stdlib records (including their ``extra=``
    fields) through the shared processor chain. Native structlog loggers use
    the same chain. Calling this more than once replaces the handler rather
    than adding another.

    Args:
        settings: Optional LoggingSettings. Loaded from the environment if None.
    """
    if settings is None:
        settings = get_logging_settings()

    shared = _shared_processors()
    renderer: Processor = (
        structlog.processors.JSONRenderer()
        if settings.use_json_logs
        else structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=[structlog.stdlib.ExtraAdder(), *shared],
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    handler.set_name("scholaris")

    root = logging.getLogger()
    for existing in list(root.handlers):
        if existing.get_name() == "scholaris":
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(settings.log_level_int)


def get_logger(name: str | None = None) -> structlog.typing.WrappedLogger:
    """Get a structlog logger bound to the given name.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("request_started", path="/healthz")
    """
    logger = structlog.get_logger()
    if name is not None:
        logger = logger.bind(logger=name)
    return logger
