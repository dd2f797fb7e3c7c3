"""Forensic watermark embedder.

Writes ``config.repetitions`` independent copies of the encoded payload into
the mean luma of keyed 2x2 pixel cells, then re-encodes the image through
the codec (JPEG by default).

Steps:

1. Decode to a flat RGBA buffer.
2. Capacity check -- raises :class:`WatermarkCapacityError` before any pixel
   is touched.
3. Encode the payload to its fixed-width bit vector.
4. For each repetition: derive cells and whitening mask, then move each
   cell's mean luma onto the lattice for its bit with a grey shift.
5. Drop alpha and re-encode at ``config.output_quality``.

Payload contents are never logged.
"""

from __future__ import annotations

import numpy as np
import structlog

from fledgely_forensics.services.watermark.capacity import (
    required_cell_count,
    required_pixel_count,
)
from fledgely_forensics.services.watermark.cells import (
    cell_count,
    cell_grid,
    cell_pixels,
    luma,
    shift_cell_luma,
)
from fledgely_forensics.services.watermark.image_codec import (
    ImageCodec,
    RawImage,
    default_codec,
)
from fledgely_forensics.services.watermark.models import (
    EmbeddedImage,
    WatermarkCapacityError,
    WatermarkConfig,
    WatermarkPayload,
)
from fledgely_forensics.services.watermark.payload_codec import encode_payload
from fledgely_forensics.services.watermark.positions import (
    repetition_mask,
    select_all_positions,
)
from fledgely_forensics.services.watermark.quantizer import lattice_targets

log = structlog.get_logger()


def embed_into(raw: RawImage, payload: WatermarkPayload, config: WatermarkConfig) -> None:
    """Embed *payload* into *raw* in place. Assumes capacity was checked."""
    bits = np.array(encode_payload(payload), dtype=np.uint8)

    all_cells = select_all_positions(
        raw.width, raw.height, config.secret_key, config.repetitions
    )
    cells = np.concatenate([np.array(c, dtype=np.int64) for c in all_cells])
    coded = np.concatenate(
        [
            bits ^ np.array(repetition_mask(config.secret_key, r, len(bits)), dtype=np.uint8)
            for r in range(config.repetitions)
        ]
    )

    shaped = raw.pixels.copy().reshape(raw.height, raw.width, raw.channels)
    columns, _ = cell_grid(raw.width, raw.height)
    rows, cols = cell_pixels(cells, columns)
    block = shaped[rows, cols, :3]
    targets = lattice_targets(luma(block).mean(axis=1), coded, config.strength)
    shaped[rows, cols, :3] = shift_cell_luma(block, targets)
    raw.pixels = shaped.reshape(-1)


def embed_watermark_image(
    image_bytes: bytes,
    payload: WatermarkPayload,
    config: WatermarkConfig | None = None,
    codec: ImageCodec | None = None,
) -> EmbeddedImage:
    """Like :func:`embed_watermark`, also reporting the decoded dimensions."""
    config = config or WatermarkConfig()
    codec = codec or default_codec()

    raw = codec.decode(image_bytes)
    if cell_count(raw.width, raw.height) < required_cell_count(config):
        raise WatermarkCapacityError(raw.width, raw.height, required_pixel_count(config))

    embed_into(raw, payload, config)
    log.debug(
        "watermark_embedded",
        width=raw.width,
        height=raw.height,
        repetitions=config.repetitions,
        strength=config.strength,
    )
    data = codec.encode(raw, config.output_quality)
    return EmbeddedImage(data=data, width=raw.width, height=raw.height)


def embed_watermark(
    image_bytes: bytes,
    payload: WatermarkPayload,
    config: WatermarkConfig | None = None,
    codec: ImageCodec | None = None,
) -> bytes:
    """Return *image_bytes* re-encoded with *payload* embedded invisibly.

    Raises :class:`WatermarkCapacityError` if the image is too small.
    Decode errors from the codec propagate unchanged.
    """
    return embed_watermark_image(image_bytes, payload, config, codec).data
