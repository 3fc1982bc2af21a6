"""
Prometheus metrics for upload and storage operations.

Metrics Provided:
    - storage_uploader_upload_requests_total: Counter of file uploads by status
    - storage_uploader_upload_bytes_total: Counter for uploaded bytes
    - storage_uploader_upload_duration_seconds: Histogram for put latency
    - storage_uploader_deleted_objects_total: Counter for confirmed deletions
    - storage_uploader_list_pages_total: Counter for listing pages fetched
    - storage_uploader_storage_errors_total: Counter for storage API errors

Usage:
    from storage_uploader.utils.metrics import get_metrics

    metrics = get_metrics()
    with metrics.track_upload():
        backend.put_object(...)
    metrics.record_upload("uploaded", bytes_uploaded=1024)
"""

import os
from contextlib import nullcontext
from typing import Optional

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from storage_uploader.utils.logging import get_logger

logger = get_logger(__name__)

UPLOAD_STATUSES = ("uploaded", "skipped", "failed")


class UploaderMetrics:
    """
    Prometheus collectors for the uploader.

    Example:
        >>> from prometheus_client import CollectorRegistry
        >>> metrics = UploaderMetrics(registry=CollectorRegistry())
        >>> metrics.record_upload("skipped")
    """

    def __init__(self, enabled: bool = True, registry: Optional[CollectorRegistry] = None) -> None:
        """
        Initialize metrics collectors.

        Args:
            enabled: Whether metrics collection is enabled
            registry: Prometheus registry (default registry if None)
        """
        self.enabled = enabled
        self.registry = registry if registry is not None else REGISTRY

        if not self.enabled:
            logger.debug("Metrics collection disabled")
            return

        self.upload_requests = Counter(
            name="storage_uploader_upload_requests_total",
            documentation="Total number of single-file uploads attempted",
            labelnames=["status"],  # uploaded, skipped, failed
            registry=self.registry,
        )

        self.upload_bytes = Counter(
            name="storage_uploader_upload_bytes_total",
            documentation="Total bytes written to object storage",
            registry=self.registry,
        )

        self.upload_duration = Histogram(
            name="storage_uploader_upload_duration_seconds",
            documentation="Time spent in put-object calls",
            buckets=[0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0],
            registry=self.registry,
        )

        self.deleted_objects = Counter(
            name="storage_uploader_deleted_objects_total",
            documentation="Total objects confirmed deleted by the storage service",
            registry=self.registry,
        )

        self.list_pages = Counter(
            name="storage_uploader_list_pages_total",
            documentation="Total listing pages fetched",
            registry=self.registry,
        )

        self.storage_errors = Counter(
            name="storage_uploader_storage_errors_total",
            documentation="Total storage API errors",
            labelnames=["operation", "error_type"],  # operation: put/list/probe/delete
            registry=self.registry,
        )

    def track_upload(self):
        """Context manager timing one put-object call."""
        if not self.enabled:
            return nullcontext()
        return self.upload_duration.time()

    def record_upload(self, status: str, bytes_uploaded: int = 0) -> None:
        """
        Record the outcome of one single-file upload.

        Args:
            status: One of ``uploaded``, ``skipped``, ``failed``
            bytes_uploaded: Size of the file written (uploaded only)
        """
        if not self.enabled:
            return
        if status not in UPLOAD_STATUSES:
            raise ValueError(f"Unknown upload status: {status}")

        self.upload_requests.labels(status=status).inc()
        if bytes_uploaded > 0:
            self.upload_bytes.inc(bytes_uploaded)

    def record_deleted(self, count: int) -> None:
        if not self.enabled or count <= 0:
            return
        self.deleted_objects.inc(count)

    def record_list_page(self) -> None:
        if not self.enabled:
            return
        self.list_pages.inc()

    def record_storage_error(self, operation: str, error: BaseException) -> None:
        """Record a storage API error, labelled by the exception class name."""
        if not self.enabled:
            return
        self.storage_errors.labels(operation=operation, error_type=type(error).__name__).inc()


_metrics_instance: Optional[UploaderMetrics] = None


def get_metrics() -> UploaderMetrics:
    """
    Get global metrics instance (singleton).

    Disabled when METRICS_ENABLED is set to anything other than "true".
    """
    global _metrics_instance

    if _metrics_instance is None:
        enabled = os.getenv("METRICS_ENABLED", "true").lower() == "true"
        _metrics_instance = UploaderMetrics(enabled=enabled)

    return _metrics_instance
