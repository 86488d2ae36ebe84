"""Structured logging for the bill payment service.

Every record is emitted as one JSON document on stdout. Records logged inside
:func:`bill_context` carry the bill's natural key under ``"bill"`` and error
fields (``error_kind``, ``error``, ``severity``) are grouped under ``"error"``
so request handlers and the reconciliation worker produce the same shape.
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from logging import LogRecord
from typing import Any, Dict, Iterator, Literal

from loguru import logger
from opentelemetry import trace


_STDLIB_RECORD_ATTRS = frozenset(LogRecord("", 0, "", 0, "", (), None).__dict__) | {"message", "asctime"}
_BILL_FIELDS = ("domain", "reference", "period")
_ERROR_FIELDS = {"error_kind": "kind", "error": "message", "severity": "level"}
_QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "aiosqlite")


class InterceptHandler(logging.Handler):
    """Route stdlib logging (uvicorn, sqlalchemy, httpx) through Loguru."""

    def emit(self, record: LogRecord) -> None:  # pragma: no cover - bridging glue
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        extra = {key: value for key, value in record.__dict__.items() if key not in _STDLIB_RECORD_ATTRS}
        bound_logger = logger.bind(**extra) if extra else logger
        bound_logger.opt(depth=6, exception=record.exc_info).log(level, "{}", record.getMessage())


@contextmanager
def bill_context(domain: str, reference: str, period: str | None = None) -> Iterator[None]:
    """Attach a bill's natural key to every record logged inside the block."""

    fields = {"domain": domain, "reference": reference}
    if period is not None:
        fields["period"] = period
    with logger.contextualize(**fields):
        yield


def build_log_payload(record: Dict[str, Any], metadata: Dict[str, Any]) -> Dict[str, Any]:
    payload: Dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name.lower(),
        "message": record["message"],
        "logger": record["name"],
        "service": metadata.get("service_name", "unknown"),
        "environment": metadata.get("environment", "unknown"),
        "version": metadata.get("version", "unknown"),
    }

    span_context = trace.get_current_span().get_span_context()
    if span_context.is_valid:
        payload["trace_id"] = f"{span_context.trace_id:032x}"
        payload["span_id"] = f"{span_context.span_id:016x}"

    extra = dict(record["extra"])
    bill = {field: extra.pop(field) for field in _BILL_FIELDS if field in extra}
    if bill:
        payload["bill"] = bill
    error = {target: extra.pop(source) for source, target in _ERROR_FIELDS.items() if source in extra}
    if error:
        payload["error"] = error
    payload.update(extra)

    if record["exception"] is not None:
        payload["exception"] = repr(record["exception"].value)
    return payload


def configure_logging(
    *,
    service_name: str,
    environment: str,
    version: str,
    level: str = "INFO",
    log_format: Literal["json", "text"] = "json",
) -> None:
    """Configure Loguru + stdlib logging; ``text`` keeps Loguru's default console format."""

    logger.remove()
    if log_format == "text":
        logger.add(sys.stderr, level=level, backtrace=False, diagnose=False)
    else:
        metadata = {"service_name": service_name, "environment": environment, "version": version}

        def sink(message: "logger.Message") -> None:
            sys.stdout.write(json.dumps(build_log_payload(message.record, metadata), default=str) + "\n")

        logger.add(sink, level=level, backtrace=False, diagnose=False)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


__all__ = ["InterceptHandler", "bill_context", "build_log_payload", "configure_logging"]
