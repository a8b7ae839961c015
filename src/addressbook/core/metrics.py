"""OpenTelemetry metrics instruments for contact batch operations.

Instruments
-----------
  addressbook.contacts.created_total        Counter  (label: mode)
  addressbook.contacts.create_errors_total  Counter  (label: mode)
  addressbook.contacts.cancelled_total      Counter  (label: mode)
  addressbook.merge.groups_total            Counter
  addressbook.merge.errors_total            Counter
  addressbook.contacts.removed_total        Counter  (label: scope=ids|merge)
  addressbook.contacts.cleared_total        Counter
  addressbook.operation.duration_ms         Histogram (label: operation)

Instruments are created lazily from the global MeterProvider, so a
``EditorMetrics`` may be built before ``init_metrics`` runs; recordings
are no-ops until a real provider is installed.
"""

from __future__ import annotations

import logging
import os

from opentelemetry import metrics

logger = logging.getLogger(__name__)

_METER_NAME = "addressbook"


def init_metrics(service_name: str = "addressbook") -> metrics.Meter:
    """Install an OTLP MeterProvider when OTEL_EXPORTER_OTLP_ENDPOINT is set."""
    endpoint = os.environ.get("OTEL_EXPORTER_OTLP_ENDPOINT")

    if not endpoint:
        logger.info("OTEL_EXPORTER_OTLP_ENDPOINT not set, using no-op meter")
        return metrics.get_meter(_METER_NAME)

    from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
    from opentelemetry.sdk.metrics import MeterProvider
    from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
    from opentelemetry.sdk.resources import Resource

    resource = Resource.create({"service.name": service_name})
    reader = PeriodicExportingMetricReader(
        OTLPMetricExporter(endpoint=endpoint), export_interval_millis=15_000
    )
    metrics.set_meter_provider(MeterProvider(resource=resource, metric_readers=[reader]))
    logger.info("Metrics initialized: service=%s, endpoint=%s", service_name, endpoint)

    return metrics.get_meter(_METER_NAME)


def get_meter() -> metrics.Meter:
    return metrics.get_meter(_METER_NAME)


class EditorMetrics:
    """Lazily-created instruments for the contact editor."""

    def __init__(self) -> None:
        self._created: metrics.Counter | None = None
        self._create_errors: metrics.Counter | None = None
        self._cancelled: metrics.Counter | None = None
        self._merge_groups: metrics.Counter | None = None
        self._merge_errors: metrics.Counter | None = None
        self._removed: metrics.Counter | None = None
        self._cleared: metrics.Counter | None = None
        self._duration: metrics.Histogram | None = None

    def _counter(self, attr: str, name: str, description: str, unit: str) -> metrics.Counter:
        instrument = getattr(self, attr)
        if instrument is None:
            instrument = get_meter().create_counter(name=name, description=description, unit=unit)
            setattr(self, attr, instrument)
        return instrument

    def record_created(self, count: int, *, mode: str | None) -> None:
        if count <= 0:
            return
        self._counter(
            "_created",
            "addressbook.contacts.created_total",
            "Contacts created through batch creation",
            "contacts",
        ).add(count, {"mode": mode or "default"})

    def record_create_errors(self, count: int, *, mode: str | None) -> None:
        if count <= 0:
            return
        self._counter(
            "_create_errors",
            "addressbook.contacts.create_errors_total",
            "Per-contact creation failures reported by the store",
            "contacts",
        ).add(count, {"mode": mode or "default"})

    def record_cancelled(self, *, mode: str | None) -> None:
        self._counter(
            "_cancelled",
            "addressbook.contacts.cancelled_total",
            "Batch creations stopped by their cancellation token",
            "operations",
        ).add(1, {"mode": mode or "default"})

    def record_merge(self, *, groups: int, errors: int) -> None:
        self._counter(
            "_merge_groups",
            "addressbook.merge.groups_total",
            "Duplicate groups processed by merges",
            "groups",
        ).add(groups)
        if errors:
            self._counter(
                "_merge_errors",
                "addressbook.merge.errors_total",
                "Errors recorded while merging duplicate groups",
                "errors",
            ).add(errors)

    def record_removed(self, count: int, *, scope: str) -> None:
        self._counter(
            "_removed",
            "addressbook.contacts.removed_total",
            "Contacts removed through deletion or merges",
            "contacts",
        ).add(count, {"scope": scope})

    def record_cleared(self) -> None:
        """Count a remove-all request; the number of contacts it dropped is unknown."""
        self._counter(
            "_cleared",
            "addressbook.contacts.cleared_total",
            "Requests that removed every contact",
            "operations",
        ).add(1)

    def record_duration(self, operation: str, duration_ms: float) -> None:
        if self._duration is None:
            self._duration = get_meter().create_histogram(
                name="addressbook.operation.duration_ms",
                description="End-to-end contact operation duration in milliseconds",
                unit="ms",
            )
        self._duration.record(duration_ms, {"operation": operation})
