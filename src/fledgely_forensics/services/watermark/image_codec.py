"""Pillow-backed image codec used by the watermark core.

The core only ever sees a flat ``uint8`` RGBA buffer: decoding always
expands to four channels so pixel ``p`` channel ``c`` lives at
``p * 4 + c`` whatever the source format was.  Encoding drops alpha again.
"""

from __future__ import annotations

import io
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from PIL import Image

from fledgely_forensics.config import settings

CHANNELS = 4


@dataclass
class RawImage:
    """Decoded pixels as a flat ``uint8`` array of ``width * height * channels``."""

    pixels: np.ndarray
    width: int
    height: int
    channels: int = CHANNELS


class ImageCodec(Protocol):
    """Structural interface for the image decode/encode collaborator."""

    media_type: str

    def decode(self, data: bytes) -> RawImage: ...

    def encode(self, image: RawImage, quality: int) -> bytes: ...


def _decode_rgba(data: bytes) -> RawImage:
    # Raises PIL.UnidentifiedImageError for anything Pillow cannot parse.
    with Image.open(io.BytesIO(data)) as img:
        rgba = img.convert("RGBA")
    width, height = rgba.size
    pixels = np.array(rgba, dtype=np.uint8).reshape(-1)
    return RawImage(pixels=pixels, width=width, height=height)


def _to_rgb_image(image: RawImage) -> Image.Image:
    shaped = image.pixels.reshape(image.height, image.width, image.channels)
    return Image.fromarray(np.ascontiguousarray(shaped[:, :, :3]), "RGB")


class JpegCodec:
    """Default codec: re-encodes watermarked screenshots as JPEG.

    Chroma is kept at full resolution (4:4:4).  Subsampled chroma makes the
    decoder clip saturated pixels, which leaks into the luma carrier.
    """

    media_type = "image/jpeg"

    def decode(self, data: bytes) -> RawImage:
        return _decode_rgba(data)

    def encode(self, image: RawImage, quality: int) -> bytes:
        buf = io.BytesIO()
        _to_rgb_image(image).save(buf, format="JPEG", quality=quality, subsampling=0)
        return buf.getvalue()


class PngCodec:
    """Lossless codec; ``quality`` is accepted for interface parity and ignored."""

    media_type = "image/png"

    def decode(self, data: bytes) -> RawImage:
        return _decode_rgba(data)

    def encode(self, image: RawImage, quality: int) -> bytes:
        buf = io.BytesIO()
        _to_rgb_image(image).save(buf, format="PNG")
        return buf.getvalue()


_CODECS: dict[str, type] = {"jpeg": JpegCodec, "png": PngCodec}


def get_codec(output_format: str) -> ImageCodec:
    """Return a codec instance for ``"jpeg"`` or ``"png"``."""
    try:
        return _CODECS[output_format.lower()]()
    except KeyError:
        raise ValueError(f"Unsupported output format: {output_format}") from None


def default_codec() -> ImageCodec:
    """Codec selected by ``WATERMARK_OUTPUT_FORMAT``."""
    return get_codec(settings.WATERMARK_OUTPUT_FORMAT)
