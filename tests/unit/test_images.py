"""Unit tests for image input helpers."""

import base64
import io
from pathlib import Path

import pytest
from PIL import Image

from promptcraft.core.images import (
    create_data_url,
    decode_data_url_image,
    infer_mime_from_magic,
    is_supported_mime_type,
    load_image_input,
    normalize_mime_type,
    parse_data_url,
    save_data_url_image,
)
from promptcraft.utils.exceptions import ImageProcessingError, ValidationError

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"
JPEG_MAGIC = b"\xff\xd8\xff"
WEBP_MAGIC = b"RIFF\x00\x00\x00\x00WEBP"


@pytest.mark.unit
class TestMime:
    def test_normalize(self):
        assert normalize_mime_type("JPG") == "image/jpeg"
        assert normalize_mime_type("image/jpg") == "image/jpeg"
        assert normalize_mime_type("image/PNG") == "image/png"
        assert normalize_mime_type("image/webp; charset=x") == "image/webp"

    def test_unsupported_returns_none(self):
        assert normalize_mime_type("image/bmp") is None
        assert normalize_mime_type("application/pdf") is None
        assert normalize_mime_type(None) is None
        assert is_supported_mime_type("image/tiff") is False

    def test_infer_from_magic(self):
        assert infer_mime_from_magic(PNG_MAGIC + b"\x00" * 8) == "image/png"
        assert infer_mime_from_magic(JPEG_MAGIC + b"\x00" * 12) == "image/jpeg"
        assert infer_mime_from_magic(WEBP_MAGIC + b"\x00" * 4) == "image/webp"
        assert infer_mime_from_magic(b"GIF89a" + b"\x00" * 8) == "image/gif"
        assert infer_mime_from_magic(b"short") is None
        assert infer_mime_from_magic(b"\x00" * 16) is None


@pytest.mark.unit
class TestDataUrl:
    def test_create_and_parse(self):
        url = create_data_url(b"abc", "image/webp")
        assert url == "data:image/webp;base64," + base64.b64encode(b"abc").decode()
        assert parse_data_url(url) == (b"abc", "image/webp")

    def test_not_a_data_url(self):
        with pytest.raises(ValidationError):
            parse_data_url("http://example.com/x.png")

    def test_missing_base64_marker(self):
        with pytest.raises(ValidationError):
            parse_data_url("data:image/png,raw")

    def test_bad_base64(self):
        with pytest.raises(ValidationError):
            parse_data_url("data:image/png;base64,!!!")


@pytest.mark.unit
class TestLoadImageInput:
    def test_bytes_infers_mime(self, png_bytes):
        image = load_image_input(png_bytes)
        assert image.mime_type == "image/png"
        assert image.data == png_bytes
        assert image.data_url.startswith("data:image/png;base64,")

    def test_path_uses_suffix(self, png_bytes, tmp_path: Path):
        path = tmp_path / "shot.png"
        path.write_bytes(png_bytes)
        assert load_image_input(path).mime_type == "image/png"

    def test_data_url(self, png_bytes):
        image = load_image_input(create_data_url(png_bytes, "image/png"))
        assert image.data == png_bytes

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ValidationError) as exc_info:
            load_image_input(tmp_path / "missing.png")
        assert exc_info.value.field == "image"

    def test_empty(self):
        with pytest.raises(ValidationError):
            load_image_input(b"")

    def test_oversized(self, png_bytes):
        with pytest.raises(ValidationError) as exc_info:
            load_image_input(png_bytes, max_bytes=10)
        assert "Max size" in str(exc_info.value)

    def test_unsupported_type(self, tmp_path: Path):
        path = tmp_path / "notes.txt"
        path.write_bytes(b"just some text, not an image")
        with pytest.raises(ValidationError) as exc_info:
            load_image_input(path)
        assert exc_info.value.field == "mime_type"

    def test_corrupt_image(self):
        with pytest.raises(ImageProcessingError):
            load_image_input(PNG_MAGIC + b"\x00" * 32)

    def test_verify_can_be_skipped(self):
        image = load_image_input(PNG_MAGIC + b"\x00" * 32, verify=False)
        assert image.mime_type == "image/png"


@pytest.mark.unit
class TestSaveDataUrlImage:
    def test_save_png(self, png_bytes, tmp_path: Path):
        out = save_data_url_image(create_data_url(png_bytes), tmp_path / "out.png")
        with Image.open(out) as img:
            assert img.size == (2, 2)

    def test_save_jpeg_from_rgba(self, tmp_path: Path):
        buf = io.BytesIO()
        Image.new("RGBA", (2, 2)).save(buf, format="PNG")
        out = save_data_url_image(create_data_url(buf.getvalue()), tmp_path / "out.jpg")
        with Image.open(out) as img:
            assert img.format == "JPEG"

    def test_decode_failure(self):
        with pytest.raises(ImageProcessingError):
            decode_data_url_image(create_data_url(b"not an image"))
