"""
Prometheus metrics for upload processing.

Provides counters and histograms for tracking:
- Stored primaries and thumbnails
- Deleted uploads
- Per-error-type failures
- Thumbnail generation time

Applications expose ``REGISTRY`` with prometheus_client's own exposition
helpers (``generate_latest``, ``make_asgi_app``).
"""

import time
from typing import Callable
from functools import wraps
from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
)

REGISTRY = CollectorRegistry()

# ========== Counters ==========

uploads_stored_total = Counter(
    "uploads_stored_total",
    "Total number of upload files stored",
    ["kind", "mode"],  # primary/thumbnail, insert/update
    registry=REGISTRY,
)

uploads_deleted_total = Counter(
    "uploads_deleted_total",
    "Total number of uploads deleted",
    ["status"],  # deleted/missing
    registry=REGISTRY,
)

upload_failures_total = Counter(
    "upload_failures_total",
    "Total number of upload fields that failed to store",
    ["error_type"],
    registry=REGISTRY,
)

# ========== Histograms ==========

thumbnail_duration_seconds = Histogram(
    "thumbnail_duration_seconds",
    "Time to resize one image",
    ["status"],  # success/failure
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
    registry=REGISTRY,
)


# ========== Metric Decorators ==========

def track_thumbnail_time(func: Callable):
    """
    Decorator to record resize duration and outcome.

    Wraps methods of objects with a ``metrics_enabled`` flag; nothing is
    recorded when the flag is off.
    """
    @wraps(func)
    def wrapper(self, *args, **kwargs):
        if not self.metrics_enabled:
            return func(self, *args, **kwargs)

        start_time = time.time()
        status = "success"
        try:
            return func(self, *args, **kwargs)
        except Exception:
            status = "failure"
            raise
        finally:
            thumbnail_duration_seconds.labels(
                status=status).observe(time.time() - start_time)

    return wrapper
