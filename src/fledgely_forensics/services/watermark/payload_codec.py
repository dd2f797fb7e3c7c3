"""Fixed-width bit encoding of :class:`WatermarkPayload`.

Layout (MSB first within every field)::

    viewer_id      28 chars x 7 bits = 196 bits
    view_timestamp 64-bit unsigned    =  64 bits
    screenshot_id  20 chars x 7 bits = 140 bits
                                       -------
                                       400 bits

The length never depends on the payload, so the extractor knows how many
bits to read without any out-of-band information.  Strings are padded with
NUL, which is never a legitimate identifier character, and trailing NULs are
stripped on decode.
"""

from __future__ import annotations

from fledgely_forensics.services.watermark.models import WatermarkPayload

VIEWER_ID_CHARS = 28
SCREENSHOT_ID_CHARS = 20
BITS_PER_CHAR = 7
TIMESTAMP_BITS = 64

PAD_CHAR = "\x00"
REPLACEMENT_CHAR = "?"

_VIEWER_BITS = VIEWER_ID_CHARS * BITS_PER_CHAR
_SCREENSHOT_BITS = SCREENSHOT_ID_CHARS * BITS_PER_CHAR


def payload_bit_length() -> int:
    """Number of bits in every encoded payload."""
    return _VIEWER_BITS + TIMESTAMP_BITS + _SCREENSHOT_BITS


def _int_to_bits(value: int, width: int) -> list[int]:
    return [(value >> shift) & 1 for shift in range(width - 1, -1, -1)]


def _bits_to_int(bits: list[int]) -> int:
    value = 0
    for bit in bits:
        value = (value << 1) | (bit & 1)
    return value


def _encode_string(value: str, chars: int) -> list[int]:
    # NUL is reserved for padding and codes above 127 do not fit in 7 bits.
    cleaned = "".join(
        ch if 0 < ord(ch) < 1 << BITS_PER_CHAR else REPLACEMENT_CHAR
        for ch in value[:chars]
    )
    bits: list[int] = []
    for ch in cleaned.ljust(chars, PAD_CHAR):
        bits.extend(_int_to_bits(ord(ch), BITS_PER_CHAR))
    return bits


def _decode_string(bits: list[int]) -> str:
    chars = [
        chr(_bits_to_int(bits[i:i + BITS_PER_CHAR]))
        for i in range(0, len(bits), BITS_PER_CHAR)
    ]
    return "".join(chars).rstrip(PAD_CHAR)


def encode_payload(payload: WatermarkPayload) -> list[int]:
    """Encode *payload* into a ``payload_bit_length()``-long list of 0/1."""
    if not 0 <= payload.view_timestamp < 1 << TIMESTAMP_BITS:
        raise ValueError("view_timestamp must fit in an unsigned 64-bit field")

    return (
        _encode_string(payload.viewer_id, VIEWER_ID_CHARS)
        + _int_to_bits(payload.view_timestamp, TIMESTAMP_BITS)
        + _encode_string(payload.screenshot_id, SCREENSHOT_ID_CHARS)
    )


def decode_payload(bits: list[int]) -> WatermarkPayload:
    """Decode a bit vector produced by :func:`encode_payload`.

    Any bit content decodes to *some* payload; deciding whether the bits
    came from a real watermark is the extractor's job.
    """
    if len(bits) != payload_bit_length():
        raise ValueError(
            f"expected {payload_bit_length()} bits, got {len(bits)}"
        )

    ts_start = _VIEWER_BITS
    sid_start = ts_start + TIMESTAMP_BITS
    return WatermarkPayload(
        viewer_id=_decode_string(bits[:ts_start]),
        view_timestamp=_bits_to_int(bits[ts_start:sid_start]),
        screenshot_id=_decode_string(bits[sid_start:]),
    )
