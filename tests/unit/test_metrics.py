"""
Unit tests for Prometheus metrics.
"""

import pytest
from prometheus_client import generate_latest

from uploader.common import metrics


def sample(name, **labels):
    return metrics.REGISTRY.get_sample_value(name, labels) or 0.0


class Resizer:
    """Minimal object carrying the metrics flag the decorator reads."""

    def __init__(self, metrics_enabled=True, fail=False):
        self.metrics_enabled = metrics_enabled
        self.fail = fail

    @metrics.track_thumbnail_time
    def resize(self):
        if self.fail:
            raise RuntimeError("backend crashed")
        return "done"


def test_track_thumbnail_time_success():
    before = sample("thumbnail_duration_seconds_count", status="success")

    assert Resizer().resize() == "done"
    assert sample("thumbnail_duration_seconds_count", status="success") == before + 1


def test_track_thumbnail_time_failure():
    before = sample("thumbnail_duration_seconds_count", status="failure")

    with pytest.raises(RuntimeError):
        Resizer(fail=True).resize()
    assert sample("thumbnail_duration_seconds_count", status="failure") == before + 1


def test_track_thumbnail_time_disabled():
    success = sample("thumbnail_duration_seconds_count", status="success")
    failure = sample("thumbnail_duration_seconds_count", status="failure")

    assert Resizer(metrics_enabled=False).resize() == "done"
    with pytest.raises(RuntimeError):
        Resizer(metrics_enabled=False, fail=True).resize()

    assert sample("thumbnail_duration_seconds_count", status="success") == success
    assert sample("thumbnail_duration_seconds_count", status="failure") == failure


def test_registry_exposition():
    metrics.uploads_deleted_total.labels(status="deleted").inc(0)

    body = generate_latest(metrics.REGISTRY).decode()

    assert "uploads_stored_total" in body
    assert "uploads_deleted_total" in body
