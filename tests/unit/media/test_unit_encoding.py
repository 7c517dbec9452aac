# tests/unit/media/test_unit_encoding.py - v2
"""Tests for media/encoding.py - data URIs for user images."""

from __future__ import annotations

import base64

import pytest

from pmdesigner.media.encoding import (
    ImageTooLargeError,
    UnsupportedImageTypeError,
    bytes_to_data_uri,
    file_to_data_uri,
    parse_data_uri,
)


class TestBytesToDataUri:
    def test_format(self):
        uri = bytes_to_data_uri(b"\x89PNG", "image/png")
        assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode()


class TestFileToDataUri:
    @pytest.mark.asyncio
    async def test_png(self, tmp_path, png_bytes):
        path = tmp_path / "product.png"
        path.write_bytes(png_bytes)
        uri = await file_to_data_uri(path)
        assert uri.startswith("data:image/png;base64,")
        assert parse_data_uri(uri).data == png_bytes

    @pytest.mark.asyncio
    async def test_jpeg_extension(self, tmp_path):
        path = tmp_path / "product.jpg"
        path.write_bytes(b"\xff\xd8\xff")
        assert (await file_to_data_uri(path)).startswith("data:image/jpeg;base64,")

    @pytest.mark.asyncio
    async def test_size_limit_inclusive(self, tmp_path):
        path = tmp_path / "exact.png"
        path.write_bytes(b"x" * 64)
        assert await file_to_data_uri(path, max_bytes=64)

    @pytest.mark.asyncio
    async def test_too_large(self, tmp_path):
        path = tmp_path / "big.png"
        path.write_bytes(b"x" * 65)
        with pytest.raises(ImageTooLargeError) as exc_info:
            await file_to_data_uri(path, max_bytes=64)
        assert exc_info.value.size == 65
        assert exc_info.value.limit == 64

    @pytest.mark.asyncio
    async def test_unsupported_type(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("hello")
        with pytest.raises(UnsupportedImageTypeError, match="notes.txt"):
            await file_to_data_uri(path)


class TestParseDataUri:
    def test_valid(self, png_data_uri, png_bytes):
        part = parse_data_uri(png_data_uri)
        assert part.mime_type == "image/png"
        assert part.data == png_bytes

    def test_surrounding_whitespace(self, png_data_uri):
        assert parse_data_uri(f"  {png_data_uri}\n") is not None

    def test_payload_wrapped_across_lines(self, png_bytes):
        data = png_bytes * 4
        encoded = base64.encodebytes(data).decode("ascii")
        assert "\n" in encoded.strip()
        part = parse_data_uri(f"data:image/png;base64,{encoded}")
        assert part is not None
        assert part.data == data

    @pytest.mark.parametrize(
        "uri",
        [
            "",
            "https://example.com/a.png",
            "data:image/png,not-base64-marked",
            "data:image/png;base64,@@@",
        ],
    )
    def test_malformed(self, uri):
        assert parse_data_uri(uri) is None
