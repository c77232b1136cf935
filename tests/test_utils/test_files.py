"""Tests for input file validation."""

import pytest

from paperless_ocr.errors.exceptions import FileIOError, ValidationError
from paperless_ocr.utils.files import validate_input_file

JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 16


class TestValidateInputFile:
    def test_pdf(self, pdf_file):
        input_file = validate_input_file(pdf_file)
        assert input_file.mime_type == "application/pdf"
        assert input_file.size == pdf_file.stat().st_size
        assert input_file.name == "doc.pdf"

    def test_png(self, png_file):
        assert validate_input_file(png_file).mime_type == "image/png"

    @pytest.mark.parametrize("suffix", [".jpg", ".jpeg", ".JPG"])
    def test_jpeg(self, tmp_path, suffix):
        path = tmp_path / f"photo{suffix}"
        path.write_bytes(JPEG_BYTES)
        assert validate_input_file(path).mime_type == "image/jpeg"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileIOError, match="not found"):
            validate_input_file(tmp_path / "missing.pdf")

    def test_directory(self, tmp_path):
        folder = tmp_path / "folder.pdf"
        folder.mkdir()
        with pytest.raises(ValidationError):
            validate_input_file(folder)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.pdf"
        path.write_bytes(b"")
        with pytest.raises(ValidationError, match="empty"):
            validate_input_file(path)

    def test_too_large(self, tmp_path):
        path = tmp_path / "big.pdf"
        with open(path, "wb") as f:
            f.write(b"%PDF")
            f.truncate(2 * 1024 * 1024)
        with pytest.raises(ValidationError, match="exceeds"):
            validate_input_file(path, max_size_mb=1)

    def test_unsupported_extension(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(ValidationError, match="Unsupported file format"):
            validate_input_file(path)

    def test_wrong_magic_bytes(self, tmp_path):
        path = tmp_path / "fake.pdf"
        path.write_bytes(b"GIF89a not really a pdf")
        with pytest.raises(ValidationError, match="does not appear"):
            validate_input_file(path)

    def test_mismatched_extension_uses_content(self, tmp_path, caplog):
        path = tmp_path / "actually_png.pdf"
        path.write_bytes(b"\x89PNG\r\n\x1a\n" + b"\x00" * 8)
        assert validate_input_file(path).mime_type == "image/png"
        assert "content is image/png" in caplog.text

    @pytest.mark.parametrize("marker", [b"/Encrypt 5 0 R", b"/Filter/Standard"])
    def test_password_protected_pdf(self, tmp_path, marker):
        path = tmp_path / "locked.pdf"
        path.write_bytes(b"%PDF-1.7\n" + marker + b"\n%%EOF")
        with pytest.raises(ValidationError, match="Password-protected"):
            validate_input_file(path)
