"""Watermark API -- embed, extract and capacity queries for the service layer.

Images travel as base64 inside JSON bodies.  The CPU-bound core runs in the
threadpool so large screenshots do not stall the event loop.
"""

from __future__ import annotations

import base64
import binascii

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from fastapi.concurrency import run_in_threadpool
from PIL import UnidentifiedImageError
from pydantic import BaseModel, Field

from fledgely_forensics.api.dependencies import require_service_key
from fledgely_forensics.services.audit_logger import AuditLogger
from fledgely_forensics.services.watermark import (
    WatermarkCapacityError,
    WatermarkConfig,
    WatermarkPayload,
    default_codec,
    detect_watermark,
    embed_watermark_image,
    get_payload_bit_length,
    has_watermark_capacity,
    required_pixel_count,
)

router = APIRouter(
    prefix="/api/v1/watermark",
    tags=["watermark"],
    dependencies=[Depends(require_service_key)],
)

audit = AuditLogger()


# ---------------------------------------------------------------------------
# Request / response schemas
# ---------------------------------------------------------------------------

class EmbedRequest(BaseModel):
    image_b64: str = Field(..., min_length=1)
    viewer_id: str = Field(..., max_length=128)
    view_timestamp: int = Field(..., ge=0, le=2**53)
    screenshot_id: str = Field(..., max_length=128)


class ExtractRequest(BaseModel):
    image_b64: str = Field(..., min_length=1)


class PayloadSchema(BaseModel):
    viewer_id: str
    view_timestamp: int
    screenshot_id: str


class ExtractResponse(BaseModel):
    found: bool
    confidence: float
    payload: PayloadSchema | None = None


class CapacityResponse(BaseModel):
    has_capacity: bool
    payload_bits: int
    required_pixels: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _decode_image_b64(image_b64: str) -> bytes:
    """Decode the base64 body field. Raises 400 on malformed input."""
    try:
        return base64.b64decode(image_b64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="image_b64 is not valid base64",
        ) from None


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------

@router.post("/embed")
async def embed(body: EmbedRequest) -> Response:
    """Return a watermarked copy of the screenshot for one guardian view."""
    image_bytes = _decode_image_b64(body.image_b64)

    config = WatermarkConfig()
    codec = default_codec()
    payload = WatermarkPayload(
        viewer_id=body.viewer_id,
        view_timestamp=body.view_timestamp,
        screenshot_id=body.screenshot_id,
    )

    try:
        embedded = await run_in_threadpool(
            embed_watermark_image, image_bytes, payload, config, codec
        )
    except WatermarkCapacityError as exc:
        audit.log_capacity_rejected(exc.width, exc.height, exc.required)
        raise HTTPException(
            status_code=422,
            detail=str(exc),
        ) from None
    except (UnidentifiedImageError, OSError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported or corrupt image",
        ) from None

    audit.log_watermark_embedded(
        embedded.width, embedded.height, config, len(embedded.data)
    )
    return Response(content=embedded.data, media_type=codec.media_type)


@router.post("/extract", response_model=ExtractResponse)
async def extract(body: ExtractRequest):
    """Scan a leaked copy and return the embedded payload, if any."""
    image_bytes = _decode_image_b64(body.image_b64)

    try:
        result = await run_in_threadpool(detect_watermark, image_bytes)
    except (UnidentifiedImageError, OSError):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported or corrupt image",
        ) from None

    audit.log_watermark_detected(result.found, result.confidence)

    payload = None
    if result.payload is not None:
        payload = PayloadSchema(
            viewer_id=result.payload.viewer_id,
            view_timestamp=result.payload.view_timestamp,
            screenshot_id=result.payload.screenshot_id,
        )
    return ExtractResponse(
        found=result.found,
        confidence=round(result.confidence, 4),
        payload=payload,
    )


@router.get("/capacity", response_model=CapacityResponse)
async def capacity(
    width: int = Query(..., ge=1),
    height: int = Query(..., ge=1),
):
    """Report whether an image of the given size can be watermarked."""
    config = WatermarkConfig()
    return CapacityResponse(
        has_capacity=has_watermark_capacity(width, height, config),
        payload_bits=get_payload_bit_length(config),
        required_pixels=required_pixel_count(config),
    )
