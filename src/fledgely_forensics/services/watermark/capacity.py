"""Capacity queries: can an image of a given size carry the watermark?

Every payload bit of every repetition needs its own whole cell, so the
pixel requirement is ``bits * repetitions * CELL_AREA`` and an odd
trailing row or column does not count towards it.
"""

from __future__ import annotations

from fledgely_forensics.services.watermark.cells import CELL_AREA, cell_count
from fledgely_forensics.services.watermark.models import WatermarkConfig
from fledgely_forensics.services.watermark.payload_codec import payload_bit_length


def get_payload_bit_length(config: WatermarkConfig | None = None) -> int:
    """Bits in one copy of the payload.

    *config* is accepted for API symmetry; field widths are fixed, so the
    result does not depend on it.
    """
    return payload_bit_length()


def required_cell_count(config: WatermarkConfig | None = None) -> int:
    config = config or WatermarkConfig()
    return payload_bit_length() * config.repetitions


def required_pixel_count(config: WatermarkConfig | None = None) -> int:
    """Pixels needed to hold every repetition without overlap."""
    return required_cell_count(config) * CELL_AREA


def has_watermark_capacity(
    width: int,
    height: int,
    config: WatermarkConfig | None = None,
) -> bool:
    """True when a ``width x height`` image can carry the watermark."""
    return cell_count(width, height) >= required_cell_count(config)
