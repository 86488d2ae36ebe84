from __future__ import annotations

import functools
import os
from typing import Any, Awaitable, Callable, Dict, TypeVar

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter, SpanExporter
from opentelemetry.semconv.resource import ResourceAttributes
from opentelemetry.trace import Status, StatusCode

from lnbill_api.domain.errors import DomainError, ErrorLevel
from lnbill_api.domain.results import Err

_CONFIGURED = False
_TRACER_NAME = "lnbill_api"

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def _build_exporter() -> SpanExporter:
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    headers_env = os.getenv("OTEL_EXPORTER_OTLP_HEADERS")

    if endpoint:
        headers: Dict[str, str] | None = None
        if headers_env:
            headers = {}
            for pair in headers_env.split(","):
                if "=" not in pair:
                    continue
                key, value = pair.split("=", 1)
                headers[key.strip()] = value.strip()
        return OTLPSpanExporter(endpoint=endpoint, headers=headers)

    return ConsoleSpanExporter()


def configure_tracing(
    app: FastAPI,
    *,
    service_name: str,
    service_version: str,
    environment: str,
) -> None:
    """Configure OpenTelemetry tracing + log correlation for the FastAPI app."""

    global _CONFIGURED

    resource = Resource.create(
        {
            ResourceAttributes.SERVICE_NAME: service_name,
            ResourceAttributes.SERVICE_VERSION: service_version,
            ResourceAttributes.DEPLOYMENT_ENVIRONMENT: environment,
        }
    )

    if not _CONFIGURED:
        tracer_provider = TracerProvider(resource=resource)
        tracer_provider.add_span_processor(BatchSpanProcessor(_build_exporter()))
        trace.set_tracer_provider(tracer_provider)
        LoggingInstrumentor().instrument(set_logging_format=False)
        _CONFIGURED = True
    else:
        tracer_provider = trace.get_tracer_provider()

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)


def record_exception_in_current_span(error: DomainError) -> None:
    """Attach a returned (not raised) domain error to the active span."""

    span = trace.get_current_span()
    if not span.is_recording():
        return
    span.record_exception(error, attributes={"error.level": error.level.value, "error.kind": error.kind})
    if error.level is ErrorLevel.CRITICAL:
        span.set_status(Status(StatusCode.ERROR, error.message or error.kind))


def traced(namespace: str) -> Callable[[F], F]:
    """Run an async function inside a span named ``{namespace}.{function}``.

    ``Err`` results are recorded on the span, matching raised exceptions.
    """

    def decorator(func: F) -> F:
        span_name = f"{namespace}.{func.__name__}"

        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            tracer = trace.get_tracer(_TRACER_NAME)
            with tracer.start_as_current_span(span_name):
                result = await func(*args, **kwargs)
                if isinstance(result, Err):
                    record_exception_in_current_span(result.error)
                return result

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = ["configure_tracing", "record_exception_in_current_span", "traced"]
