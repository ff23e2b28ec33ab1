"""
Unit tests for identifier-to-location mapping.
"""

import hashlib

import pytest

from uploader.common.errors import ConfigurationError
from uploader.storage.locations import LocationBuilder


def test_flat_scheme(tmp_path):
    builder = LocationBuilder(tmp_path, "flat")

    assert builder.build(523, ".pdf") == "523.pdf"
    assert list(tmp_path.iterdir()) == []


def test_hashed_scheme(tmp_path):
    builder = LocationBuilder(tmp_path, "hashed")
    digest = hashlib.md5(b"523").hexdigest()

    location = builder.build(523, ".pdf")

    assert location == f"{digest[0]}/{digest[1]}/{digest[2]}/523.pdf"
    assert (tmp_path / digest[0] / digest[1] / digest[2]).is_dir()


def test_hashed_scheme_is_deterministic(tmp_path):
    builder = LocationBuilder(tmp_path, "hashed")
    assert builder.build(42, ".png") == builder.build(42, ".png")


def test_url(tmp_path):
    builder = LocationBuilder(tmp_path, "flat")

    assert builder.url("http://localhost/uploads", 3, ".png") == "http://localhost/uploads/3.png"
    assert builder.url("http://localhost/uploads/", 3, ".png") == "http://localhost/uploads/3.png"


def test_relative_does_not_create_directories(tmp_path):
    builder = LocationBuilder(tmp_path, "hashed")
    digest = hashlib.md5(b"523").hexdigest()

    assert builder.relative(523, ".pdf") == f"{digest[0]}/{digest[1]}/{digest[2]}/523.pdf"
    assert list(tmp_path.iterdir()) == []


def test_hashed_url_does_not_create_directories(tmp_path):
    builder = LocationBuilder(tmp_path, "hashed")

    url = builder.url("http://localhost/uploads", 523, ".pdf")

    assert url == f"http://localhost/uploads/{builder.relative(523, '.pdf')}"
    assert list(tmp_path.iterdir()) == []


def test_unknown_scheme(tmp_path):
    with pytest.raises(ConfigurationError):
        LocationBuilder(tmp_path, "sharded")
