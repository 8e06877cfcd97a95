from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping, MutableMapping
from uuid import uuid4


_CORRELATION_ID: ContextVar[str | None] = ContextVar("correlation_id", default=None)


class JsonFormatter(logging.Formatter):
    """Serialize log records into single-line JSON for structured ingestion."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401 - override
        payload: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = _CORRELATION_ID.get()
        if correlation_id:
            payload["correlation_id"] = correlation_id
        structured = getattr(record, "structured_data", None)
        if isinstance(structured, Mapping):
            payload.update(structured)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=True, default=str)


class StructuredAdapter(logging.LoggerAdapter):
    """Logger adapter that merges adapter defaults with per-call structured fields."""

    def process(self, msg: str, kwargs: MutableMapping[str, Any]) -> tuple[str, MutableMapping[str, Any]]:
        extra_payload: Dict[str, Any] = dict(self.extra or {})
        existing_extra = kwargs.get("extra")
        if isinstance(existing_extra, dict):
            structured = existing_extra.get("structured_data")
            if isinstance(structured, Mapping):
                extra_payload.update(dict(structured))
        else:
            existing_extra = {}
        existing_extra["structured_data"] = extra_payload
        kwargs["extra"] = existing_extra
        return msg, kwargs


_STRUCTURED_ATTR = "_structured_configured"


def configure_logging(*, level: int = logging.INFO, environment: str = "dev") -> None:
    """Install the JSON handler on the root logger once.

    ``dev`` and ``test`` environments log at DEBUG unless a level is given
    explicitly; ``prod`` never goes below INFO.
    """
    root = logging.getLogger()
    if bool(getattr(root, _STRUCTURED_ATTR, False)):
        return

    if environment in ("dev", "test"):
        effective_level = logging.DEBUG if level == logging.INFO else level
    elif environment == "prod":
        effective_level = max(level, logging.INFO)
    else:
        effective_level = level

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(effective_level)
    setattr(root, _STRUCTURED_ATTR, True)


def get_logger(name: str, **defaults: Any) -> StructuredAdapter:
    """Return a structured logger adapter injecting default structured fields."""

    return StructuredAdapter(logging.getLogger(name), defaults)


def get_correlation_id() -> str | None:
    return _CORRELATION_ID.get()


@contextmanager
def correlation_context(correlation_id: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of a scoring request."""

    cid = correlation_id or str(uuid4())
    token = _CORRELATION_ID.set(cid)
    try:
        yield cid
    finally:
        _CORRELATION_ID.reset(token)


__all__ = [
    "JsonFormatter",
    "configure_logging",
    "get_logger",
    "get_correlation_id",
    "correlation_context",
]
