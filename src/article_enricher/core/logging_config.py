"""Structured logging configuration using structlog.

Call ``configure_logging()`` once at process start (the FastAPI app factory,
the Celery worker and the scripts all do).  Modules then log through either
API:

Stdlib usage (library modules)::

    import logging
    logger = logging.getLogger(__name__)
    logger.info("enrichment: article %s enhanced", article_id)

Structlog usage (routes, richer context binding)::

    import structlog
    logger = structlog.get_logger(__name__)
    logger.info("batch_scheduled", count=7)

Two context sources are merged into every record: the HTTP request id set
by the middleware in ``api/main.py``, and the article id bound by the
enrichment coordinator with :func:`bind_article_context`.
"""

from __future__ import annotations

import logging
import re
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

import structlog
from structlog.types import EventDict, WrappedLogger

request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)
"""Per-request ID propagated from the HTTP middleware to log processors."""

article_id_var: ContextVar[str | None] = ContextVar("article_id", default=None)
"""Id of the article currently moving through the pipeline, if any."""


_SECRET_SUBSTRINGS: frozenset[str] = frozenset({
    "api_key",
    "apikey",
    "password",
    "secret",
    "token",
    "authorization",
    "x-goog-api-key",
})
"""Lower-cased substrings identifying event-dict keys whose values are redacted."""

#: The Custom Search API takes the key as a ``key=`` query
#: parameter, so URLs in log lines must be scrubbed as well.
_KEY_IN_URL = re.compile(r"([?&](?:key|api_key|cx)=)[^&\s]+", re.IGNORECASE)

_REDACTED = "[REDACTED]"

#: Third-party loggers silenced to WARNING outside DEBUG.
_NOISY_LOGGERS: tuple[str, ...] = (
    "uvicorn.access",
    "httpx",
    "httpcore",
    "trafilatura",
    "htmldate",
    "asyncio",
)


def _redact_secrets(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Replace secret-bearing values and scrub API keys out of URL strings.

    Args:
        logger: The wrapped logger instance (unused).
        method_name: The log method name (unused).
        event_dict: Mutable event dictionary being assembled.

    Returns:
        The event dict with sensitive values replaced by ``"[REDACTED]"``.
    """
    for key in list(event_dict.keys()):
        if any(secret in key.lower() for secret in _SECRET_SUBSTRINGS):
            event_dict[key] = _REDACTED
            continue
        value = event_dict[key]
        if isinstance(value, str) and "=" in value:
            event_dict[key] = _KEY_IN_URL.sub(rf"\1{_REDACTED}", value)
        elif isinstance(value, dict):
            for nested_key in list(value.keys()):
                if any(secret in nested_key.lower() for secret in _SECRET_SUBSTRINGS):
                    value[nested_key] = _REDACTED
    return event_dict


def _inject_context_ids(
    logger: WrappedLogger,  # noqa: ARG001
    method_name: str,  # noqa: ARG001
    event_dict: EventDict,
) -> EventDict:
    """Add ``request_id`` and ``article_id`` from their context variables."""
    rid = request_id_var.get()
    if rid is not None:
        event_dict.setdefault("request_id", rid)
    aid = article_id_var.get()
    if aid is not None:
        event_dict.setdefault("article_id", aid)
    return event_dict


@contextmanager
def bind_article_context(article_id: object) -> Iterator[None]:
    """Tag every log record emitted inside the block with ``article_id``.

    Usage::

        with bind_article_context(article.id):
            await coordinator.enhance_article(article.id)
    """
    token = article_id_var.set(str(article_id))
    try:
        yield
    finally:
        article_id_var.reset(token)


def configure_logging(log_level: str = "INFO") -> None:
    """Configure structlog and stdlib logging.

    Outside DEBUG the output is newline-delimited JSON; at DEBUG it is
    structlog's coloured ``ConsoleRenderer``.  Every record carries
    ``timestamp``, ``level``, ``logger`` and ``event`` plus any bound
    context ids.

    Calling this more than once replaces the previous configuration, which
    tests rely on.

    Args:
        log_level: ``"DEBUG"``, ``"INFO"``, ``"WARNING"``, ``"ERROR"`` or
            ``"CRITICAL"``.  Case-insensitive; unknown values mean INFO.
    """
    level_upper = log_level.upper()
    numeric_level = getattr(logging, level_upper, logging.INFO)
    is_development = level_upper == "DEBUG"

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _inject_context_ids,
        _redact_secrets,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if is_development:
        final_renderer: structlog.types.Processor = structlog.dev.ConsoleRenderer(
            colors=True,
        )
    else:
        final_renderer = structlog.processors.JSONRenderer()

    # Route ``logging.getLogger(__name__)`` records through the same chain.
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            final_renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)

    if not is_development:
        for noisy_logger in _NOISY_LOGGERS:
            logging.getLogger(noisy_logger).setLevel(logging.WARNING)

    structlog.configure(
        processors=shared_processors
        + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
