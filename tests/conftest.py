# Test configuration

import os
import sys
from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy import create_engine

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from uploader.catalog.store import MetadataStore  # noqa: E402
from uploader.config.settings import Settings  # noqa: E402
from uploader.ingest.orchestrator import UploadOrchestrator  # noqa: E402
from uploader.storage.filesystem import FilesystemStorage  # noqa: E402


@pytest.fixture
def test_settings(tmp_path):
    """Override settings for testing"""
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'uploads.db'}",
        upload_path=str(tmp_path / "uploads"),
        upload_url="http://localhost/uploads",
        location_scheme="flat",
        metrics_enabled=True,
    )


@pytest.fixture
def engine(test_settings):
    engine = create_engine(test_settings.database_url)
    yield engine
    engine.dispose()


@pytest.fixture
def store(engine):
    store = MetadataStore(engine)
    store.create_schema()
    return store


@pytest.fixture
def storage(test_settings):
    return FilesystemStorage(test_settings.upload_path)


@pytest.fixture
def photo_spec():
    return {"photo": [{"name": "photo_thumb", "w": 100, "h": 100}]}


@pytest.fixture
def orchestrator(photo_spec, store, storage, test_settings):
    return UploadOrchestrator(photo_spec, store, storage, settings=test_settings)


@pytest.fixture
def make_image(tmp_path):
    """Write a solid-color image to disk and return its path."""
    counter = {"n": 0}

    def _make(width: int, height: int, fmt: str = "PNG", name: str = None) -> Path:
        counter["n"] += 1
        suffix = {"PNG": ".png", "JPEG": ".jpg", "GIF": ".gif"}.get(fmt, ".img")
        path = tmp_path / "src" / (name or f"image{counter['n']}{suffix}")
        path.parent.mkdir(parents=True, exist_ok=True)
        mode = "P" if fmt == "GIF" else "RGB"
        Image.new(mode, (width, height), color=0 if mode == "P" else "red").save(path, format=fmt)
        return path

    return _make


@pytest.fixture
def make_text_file(tmp_path):
    def _make(content: str = "hello, world\n", name: str = "notes.txt") -> Path:
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
        return path

    return _make


@pytest.fixture
def make_xpm(tmp_path):
    """Write a single-color XPM image, a format Pillow reads but cannot write."""
    def _make(width: int, height: int, name: str = "icon.xpm") -> Path:
        path = tmp_path / "src" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        rows = "".join(f'"{"a" * width}",\n' for _ in range(height))
        path.write_text(
            "/* XPM */\n"
            "static char *icon[] = {\n"
            f'"{width} {height} 1 1",\n'
            '"a c #FF0000",\n'
            f"{rows}"
            "};\n"
        )
        return path

    return _make
