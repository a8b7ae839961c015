"""OpenTelemetry initialization and span wrappers for contact operations."""

from __future__ import annotations

import functools
import logging
import os

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider

from addressbook.core.logging import reset_operation_context, set_operation_context

logger = logging.getLogger(__name__)

_TRACER_NAME = "addressbook"

# True once the global TracerProvider has been installed.
_tracer_provider_installed: bool = False


def init_telemetry(service_name: str = "addressbook") -> trace.Tracer:
    """Initialize OpenTelemetry tracing.

    When OTEL_EXPORTER_OTLP_ENDPOINT is set, installs a TracerProvider with
    an OTLP gRPC exporter on the first call; later calls reuse it.
    Otherwise the no-op tracer is returned.
    """
    global _tracer_provider_installed

    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")

    if not endpoint:
        logger.info("OTEL_EXPORTER_OTLP_ENDPOINT not set, using no-op tracer")
        return trace.get_tracer(service_name)

    if _tracer_provider_installed:
        return trace.get_tracer(service_name)

    # Import exporter only when needed
    from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
    from opentelemetry.sdk.trace.export import BatchSpanProcessor

    provider = TracerProvider(resource=Resource.create({"service.name": service_name}))
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))

    trace.set_tracer_provider(provider)
    _tracer_provider_installed = True
    logger.info("Telemetry initialized: endpoint=%s", endpoint)
    return trace.get_tracer(service_name)


def get_tracer(name: str = _TRACER_NAME) -> trace.Tracer:
    return trace.get_tracer(name)


class operation_span:
    """Create a span named ``addressbook.<operation>``.

    Usable as a context manager or as a decorator on async functions.
    While the span is open the operation name is also set in the logging
    context.  Exceptions are recorded on the span and re-raised.
    """

    def __init__(self, operation: str) -> None:
        self._operation = operation
        self._span_name = f"addressbook.{operation}"
        self._span: trace.Span | None = None
        self._token: object | None = None
        self._log_token = None

    def __enter__(self) -> trace.Span:
        tracer = get_tracer()
        self._span = tracer.start_span(self._span_name)
        self._span.set_attribute("addressbook.operation", self._operation)
        self._token = trace.context_api.attach(trace.set_span_in_context(self._span))
        self._log_token = set_operation_context(self._operation)
        return self._span

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._span is None:
            return
        if exc_val is not None:
            self._span.set_status(trace.StatusCode.ERROR, str(exc_val))
            self._span.record_exception(exc_val)
        self._span.end()
        if self._token is not None:
            trace.context_api.detach(self._token)
        if self._log_token is not None:
            reset_operation_context(self._log_token)

    def __call__(self, func):  # noqa: ANN001, ANN204
        # Each invocation gets a fresh instance so concurrent calls do not
        # share span/token state.
        operation = self._operation

        @functools.wraps(func)
        async def _wrapper(*args, **kwargs):  # noqa: ANN002, ANN003, ANN202
            with operation_span(operation):
                return await func(*args, **kwargs)

        return _wrapper
