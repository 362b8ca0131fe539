"""Data URI parsing and bounded PNG re-encoding."""

from __future__ import annotations

import base64
import binascii
import io
import re
from dataclasses import dataclass

from PIL import Image

MAX_DIMENSION = 512
# The tagging model rejects inline images above roughly this many characters.
MAX_DATA_URI_LENGTH = 1_000_000
SUPPORTED_MIME_TYPES = ("image/png", "image/jpeg", "image/jpg", "image/webp")

_DATA_URI_PATTERN = re.compile(r"^data:(image/(?:png|jpeg|jpg|webp));base64,(.*)$", re.DOTALL)
_EXTENSIONS = {"image/png": "png", "image/webp": "webp"}


class InvalidDataURIError(ValueError):
    """Raised when a payload is not a base64 image data URI of a supported type."""


@dataclass(frozen=True)
class DecodedImage:
    mime_type: str
    data: bytes

    @property
    def extension(self) -> str:
        return _EXTENSIONS.get(self.mime_type, "jpg")


def decode_data_uri(data_uri: str) -> DecodedImage:
    match = _DATA_URI_PATTERN.match(data_uri or "")
    if not match:
        raise InvalidDataURIError(f"Invalid data URI format: {(data_uri or '')[:40]!r}")
    mime_type, encoded = match.groups()
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidDataURIError("Data URI payload is not valid base64") from exc
    return DecodedImage(mime_type=mime_type, data=data)


def encode_data_uri(data: bytes, mime_type: str = "image/png") -> str:
    return f"data:{mime_type};base64,{base64.b64encode(data).decode('ascii')}"


def resize_to_png(data: bytes, max_dimension: int = MAX_DIMENSION) -> bytes:
    """Fit an image inside ``max_dimension`` square, keep transparency, emit PNG.

    Aspect ratio is preserved and smaller images are never enlarged.
    """

    with Image.open(io.BytesIO(data)) as image:
        image.load()
        converted = image if image.mode in ("RGBA", "LA", "RGB", "L", "P") else image.convert("RGBA")
        converted.thumbnail((max_dimension, max_dimension))
        buffer = io.BytesIO()
        converted.save(buffer, format="PNG")
    return buffer.getvalue()


__all__ = [
    "DecodedImage",
    "InvalidDataURIError",
    "MAX_DATA_URI_LENGTH",
    "MAX_DIMENSION",
    "SUPPORTED_MIME_TYPES",
    "decode_data_uri",
    "encode_data_uri",
    "resize_to_png",
]
