"""
Unit tests for scoped temporary files.
"""

import io

import pytest

from uploader.media.tempfiles import TempFileScope


def test_copy_stream_writes_content(tmp_path):
    with TempFileScope(str(tmp_path)) as scope:
        path = scope.copy_stream(io.BytesIO(b"upload bytes"), suffix=".bin")

        assert path.read_bytes() == b"upload bytes"
        assert path.suffix == ".bin"
        assert path.parent == tmp_path


def test_files_removed_on_success(tmp_path):
    with TempFileScope(str(tmp_path)) as scope:
        first = scope.new_path(".png")
        second = scope.copy_stream(io.BytesIO(b"x"))
        assert first.exists() and second.exists()

    assert not first.exists()
    assert not second.exists()
    assert scope.paths == []


def test_files_removed_on_error(tmp_path):
    created = []
    with pytest.raises(RuntimeError):
        with TempFileScope(str(tmp_path)) as scope:
            created.append(scope.new_path())
            raise RuntimeError("boom")

    assert not created[0].exists()


def test_cleanup_tolerates_already_deleted(tmp_path):
    with TempFileScope(str(tmp_path)) as scope:
        path = scope.new_path()
        path.unlink()
