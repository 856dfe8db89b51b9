"""
# Backup Metrics

Prometheus metrics for backup export and import, scraped from `/metrics`.

- **Counters**: operations by status, records imported per resource and outcome,
  media files skipped during export, archive validation failures.
- **Histograms**: operation duration and archive size.
- **Gauges**: operations currently in progress.

```python
backup_metrics.record_operation_start("export")
backup_metrics.record_operation_complete("export", "success", duration=1.2, archive_size=20480)
```
"""

from typing import Optional

from prometheus_client import Counter, Gauge, Histogram

from folio_blog.managers.logging_manager import get_logger

logger = get_logger(prefix="[BackupMetrics]")


class BackupMetrics:
    """Prometheus metrics for backup export/import."""

    def __init__(self):
        self.operations_total = Counter(
            "backup_operations_total",
            "Total number of backup operations",
            ["type", "status"],
        )

        self.records_processed = Counter(
            "backup_records_processed_total",
            "Records processed during backup import",
            ["resource", "outcome"],
        )

        self.media_skipped = Counter(
            "backup_media_skipped_total",
            "Referenced media files skipped during export",
            ["namespace"],
        )

        self.validation_failures = Counter(
            "backup_validation_failures_total",
            "Total number of archive validation failures",
            ["reason"],
        )

        self.operation_duration = Histogram(
            "backup_duration_seconds",
            "Duration of backup operations",
            ["type"],
            buckets=(0.1, 0.5, 1, 5, 10, 30, 60, 120, 300),
        )

        self.archive_size = Histogram(
            "backup_archive_size_bytes",
            "Size of backup archives",
            ["type"],
            buckets=(1024 * 1024, 10 * 1024 * 1024, 100 * 1024 * 1024, 500 * 1024 * 1024),
        )

        self.active_operations = Gauge(
            "backup_active_count",
            "Number of backup operations in progress",
            ["type"],
        )

        logger.info("Backup metrics initialized")

    def record_operation_start(self, operation_type: str):
        self.active_operations.labels(type=operation_type).inc()

    def record_operation_complete(
        self,
        operation_type: str,
        status: str,
        duration: float,
        archive_size: Optional[int] = None,
    ):
        """Record completion of an operation."""
        self.active_operations.labels(type=operation_type).dec()
        self.operations_total.labels(type=operation_type, status=status).inc()
        self.operation_duration.labels(type=operation_type).observe(duration)
        if archive_size is not None:
            self.archive_size.labels(type=operation_type).observe(archive_size)

    def record_import_result(self, resource: str, success: int, failed: int):
        if success:
            self.records_processed.labels(resource=resource, outcome="success").inc(success)
        if failed:
            self.records_processed.labels(resource=resource, outcome="failed").inc(failed)

    def record_media_skipped(self, namespace: str):
        self.media_skipped.labels(namespace=namespace).inc()

    def record_validation_failure(self, reason: str):
        self.validation_failures.labels(reason=reason).inc()


# Global metrics instance
backup_metrics = BackupMetrics()
