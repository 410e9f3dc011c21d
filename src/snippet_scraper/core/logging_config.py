"""Structured logging for the snippet scraper, built on structlog.

The library never configures logging on import.  Applications (and the
``snippet-scraper`` CLI) call :func:`configure_logging` once; afterwards both
stdlib loggers (used throughout the scraper modules) and structlog loggers
render through the same :class:`structlog.stdlib.ProcessorFormatter`.

Records of one logical fetch can be correlated by setting
:data:`fetch_id_var` before calling ``fetch_fragment``; the value follows the
fetch across its redirect hops because they run in the same task.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

fetch_id_var: ContextVar[str | None] = ContextVar("fetch_id", default=None)
"""Correlation ID merged into every record emitted while it is set."""

REDACTED = "[REDACTED]"

#: Key fragments marking credential-bearing values.  Custom request headers
#: (``Cookie``, ``Authorization``, API keys) are the usual carriers.
_SECRET_KEY_PARTS: tuple[str, ...] = (
    "authorization",
    "cookie",
    "token",
    "password",
    "secret",
    "api_key",
    "api-key",
    "bearer",
)

#: Third-party loggers that are only interesting when debugging a fetch.
_CHATTY_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "hpack")


def _is_secret_key(key: object) -> bool:
    lowered = str(key).lower()
    return any(part in lowered for part in _SECRET_KEY_PARTS)


def _redact_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {
            key: REDACTED if _is_secret_key(key) else _redact_value(nested)
            for key, nested in value.items()
        }
    return value


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Mask secret-looking keys, including inside nested header mappings."""
    return {
        key: REDACTED if _is_secret_key(key) else _redact_value(value)
        for key, value in event_dict.items()
    }


def _add_fetch_id(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    fetch_id = fetch_id_var.get()
    if fetch_id is not None:
        event_dict.setdefault("fetch_id", fetch_id)
    return event_dict


def _pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        _add_fetch_id,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _build_handler(pre_chain: list[Processor], human_readable: bool) -> logging.Handler:
    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())
        if human_readable
        else structlog.processors.JSONRenderer()
    )
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def configure_logging(log_level: str = "INFO") -> None:
    """Route all scraper logging to stderr through structlog.

    ``DEBUG`` selects the console renderer (one readable line per record,
    httpx/httpcore chatter included).  Any other level emits one JSON object
    per line with ``timestamp``, ``level``, ``logger``, ``event`` and, when
    set, ``fetch_id``.

    Re-running replaces the root handlers installed by the previous call.

    Args:
        log_level: Level name, case-insensitive.  Unknown names mean ``INFO``.
    """
    level_name = log_level.upper()
    debugging = level_name == "DEBUG"
    pre_chain = _pre_chain()

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_build_handler(pre_chain, human_readable=debugging))
    root.setLevel(getattr(logging, level_name, logging.INFO))

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET if debugging else logging.WARNING)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
