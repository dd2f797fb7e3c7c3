"""Forensic watermark extractor.

Mirrors the embedder using only the shared secret key: the same cells and
whitening masks are derived, each reading is unmasked, and every bit is
decided by majority vote across repetitions.

Whether an image carries a watermark at all is judged against the
majority-decoded bits.  Each repetition's agreement is the fraction of its
bits matching that vector, and the confidence is the agreement of the
weakest repetition within the best-agreeing strict majority.  When a
strict majority of repetitions is intact the confidence stays near 1.0
whatever happened to the rest.  With no watermark the readings are
independent coin flips, and every repetition agrees with the majority only
about as often as chance allows (0.75 for three repetitions, less for
more).  Scores below ``config.detection_threshold`` are reported as "no
watermark".
"""

from __future__ import annotations

import numpy as np
import structlog

from fledgely_forensics.services.watermark.capacity import required_cell_count
from fledgely_forensics.services.watermark.cells import cell_count, cell_luma
from fledgely_forensics.services.watermark.image_codec import (
    ImageCodec,
    RawImage,
    default_codec,
)
from fledgely_forensics.services.watermark.models import (
    DetectionResult,
    WatermarkConfig,
    WatermarkPayload,
)
from fledgely_forensics.services.watermark.payload_codec import (
    decode_payload,
    payload_bit_length,
)
from fledgely_forensics.services.watermark.positions import (
    repetition_mask,
    select_all_positions,
)
from fledgely_forensics.services.watermark.quantizer import read_bits

log = structlog.get_logger()


def read_repetitions(raw: RawImage, config: WatermarkConfig) -> np.ndarray:
    """Unmasked bit readings, shape ``(repetitions, payload_bit_length())``.

    Assumes the capacity check has already passed.
    """
    bit_count = payload_bit_length()
    readings = np.empty((config.repetitions, bit_count), dtype=np.uint8)
    shaped = raw.pixels.reshape(raw.height, raw.width, raw.channels)

    all_cells = select_all_positions(
        raw.width, raw.height, config.secret_key, config.repetitions
    )
    for repetition, cells in enumerate(all_cells):
        mask = np.array(
            repetition_mask(config.secret_key, repetition, bit_count), dtype=np.uint8
        )
        readings[repetition] = read_bits(cell_luma(shaped, cells), config.strength) ^ mask
    return readings


def majority_vote(readings: np.ndarray) -> np.ndarray:
    """Decide each bit by majority over repetitions; ties resolve to 0."""
    ones = readings.sum(axis=0, dtype=np.int64)
    return (ones * 2 > readings.shape[0]).astype(np.uint8)


def repetition_agreement(readings: np.ndarray, decided: np.ndarray) -> np.ndarray:
    """Fraction of each repetition's bits that match *decided*."""
    return (readings == decided).mean(axis=1)


def confidence_score(readings: np.ndarray, decided: np.ndarray | None = None) -> float:
    """Agreement of the ``repetitions // 2 + 1``-th best repetition, in ``[0, 1]``."""
    if decided is None:
        decided = majority_vote(readings)
    agreement = np.sort(repetition_agreement(readings, decided))[::-1]
    return float(agreement[readings.shape[0] // 2])


def detect_watermark(
    image_bytes: bytes,
    config: WatermarkConfig | None = None,
    codec: ImageCodec | None = None,
) -> DetectionResult:
    """Scan *image_bytes* and return the payload (if any) with its confidence."""
    config = config or WatermarkConfig()
    codec = codec or default_codec()

    raw = codec.decode(image_bytes)
    if cell_count(raw.width, raw.height) < required_cell_count(config):
        log.debug("watermark_scan_skipped", width=raw.width, height=raw.height)
        return DetectionResult(payload=None)

    readings = read_repetitions(raw, config)
    decided = majority_vote(readings)
    confidence = confidence_score(readings, decided)
    found = confidence >= config.detection_threshold
    log.debug(
        "watermark_scanned",
        width=raw.width,
        height=raw.height,
        confidence=round(confidence, 4),
        found=found,
    )
    if not found:
        return DetectionResult(payload=None, confidence=confidence)

    return DetectionResult(payload=decode_payload(decided.tolist()), confidence=confidence)


def extract_watermark(
    image_bytes: bytes,
    config: WatermarkConfig | None = None,
    codec: ImageCodec | None = None,
) -> WatermarkPayload | None:
    """Return the embedded payload, or ``None`` when no watermark is found."""
    return detect_watermark(image_bytes, config, codec).payload


def has_watermark(
    image_bytes: bytes,
    config: WatermarkConfig | None = None,
    codec: ImageCodec | None = None,
) -> bool:
    """True when *image_bytes* carries a watermark under *config*'s key."""
    return detect_watermark(image_bytes, config, codec).found
