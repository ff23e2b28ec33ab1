"""
Unit tests for upload sources.
"""

import io

from fastapi import UploadFile
from starlette.datastructures import FormData, Headers

from uploader.ingest.sources import FormUploadSource, LocalFileSource


def form_file(content: bytes, filename: str, content_type: str) -> UploadFile:
    return UploadFile(
        file=io.BytesIO(content),
        filename=filename,
        headers=Headers({"content-type": content_type}),
    )


class TestFormUploadSource:
    """Test reading uploads from a multipart form."""

    def test_fetch_file_part(self):
        form = FormData([("photo", form_file(b"png-bytes", "me.png", "image/png"))])

        upload = FormUploadSource(form).fetch("photo")

        assert upload.filename == "me.png"
        assert upload.content_type == "image/png"
        assert upload.stream.read() == b"png-bytes"

    def test_stream_is_rewound(self):
        part = form_file(b"abc", "a.txt", "text/plain")
        part.file.read()

        upload = FormUploadSource({"doc": part}).fetch("doc")
        assert upload.stream.read() == b"abc"

    def test_missing_field(self):
        assert FormUploadSource(FormData()).fetch("photo") is None

    def test_plain_value_is_not_an_upload(self):
        form = FormData([("photo", "not a file"), ("photo_id", "3")])
        assert FormUploadSource(form).fetch("photo") is None

    def test_part_without_filename(self):
        form = {"photo": form_file(b"", "", "application/octet-stream")}
        assert FormUploadSource(form).fetch("photo") is None


class TestLocalFileSource:
    """Test reading uploads from disk."""

    def test_path_entry(self, make_image):
        path = make_image(4, 4, name="local.png")

        upload = LocalFileSource({"photo": path}).fetch("photo")

        assert upload.filename == "local.png"
        assert upload.content_type is None
        assert upload.stream.read() == path.read_bytes()

    def test_entry_with_content_type(self, make_text_file):
        path = make_text_file()

        upload = LocalFileSource({"doc": (str(path), "text/plain")}).fetch("doc")

        assert upload.content_type == "text/plain"
        assert upload.filename == "notes.txt"

    def test_unknown_field(self):
        assert LocalFileSource({}).fetch("photo") is None

    def test_missing_file(self, tmp_path, caplog):
        source = LocalFileSource({"photo": tmp_path / "gone.png"})

        assert source.fetch("photo") is None
        assert "not found" in caplog.text
