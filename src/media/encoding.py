# src/media/encoding.py - v2
"""Data-URI encoding of user images for inline request parts."""

from __future__ import annotations

import asyncio
import base64
import binascii
import mimetypes
import re
from pathlib import Path

from pmdesigner.llm.models import InlinePart

MAX_IMAGE_SIZE_BYTES = 10 * 1024 * 1024
ACCEPTED_IMAGE_TYPES: tuple[str, ...] = ("image/jpeg", "image/jpg", "image/png", "image/webp")

_DATA_URI = re.compile(r"^data:(?P<mime>[\w.+-]+/[\w.+-]+);base64,(?P<data>.+)$", re.DOTALL)
_WHITESPACE = re.compile(r"\s+")


class ImageTooLargeError(ValueError):
    """Input file exceeds the upload ceiling."""

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File size {size} bytes exceeds the limit of {limit // (1024 * 1024)}MB"
        )


class UnsupportedImageTypeError(ValueError):
    """Input file is not an accepted image type."""


def bytes_to_data_uri(data: bytes, mime_type: str) -> str:
    encoded = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{encoded}"


async def file_to_data_uri(
    path: Path | str,
    max_bytes: int = MAX_IMAGE_SIZE_BYTES,
) -> str:
    """Read an image file and encode it as a data URI.

    The size ceiling is checked before the file is read.

    Raises:
        ImageTooLargeError: File larger than ``max_bytes``.
        UnsupportedImageTypeError: Extension does not map to an accepted type.
    """
    path = Path(path)
    size = path.stat().st_size
    if size > max_bytes:
        raise ImageTooLargeError(size, max_bytes)

    mime_type, _ = mimetypes.guess_type(path.name)
    if mime_type not in ACCEPTED_IMAGE_TYPES:
        raise UnsupportedImageTypeError(
            f"Unsupported image type {mime_type!r} for {path.name}; "
            f"accepted: {', '.join(ACCEPTED_IMAGE_TYPES)}"
        )

    data = await asyncio.to_thread(path.read_bytes)
    return bytes_to_data_uri(data, mime_type)


def parse_data_uri(uri: str) -> InlinePart | None:
    """Decode a ``data:<mime>;base64,<payload>`` string, None if malformed.

    Line breaks and other whitespace inside the payload are ignored.
    """
    match = _DATA_URI.match(uri.strip())
    if match is None:
        return None
    try:
        payload = _WHITESPACE.sub("", match.group("data"))
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError):
        return None
    return InlinePart(mime_type=match.group("mime"), data=data)
