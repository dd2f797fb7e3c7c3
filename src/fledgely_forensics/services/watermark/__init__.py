from fledgely_forensics.services.watermark.capacity import (
    get_payload_bit_length,
    has_watermark_capacity,
    required_pixel_count,
)
from fledgely_forensics.services.watermark.embedder import (
    embed_watermark,
    embed_watermark_image,
)
from fledgely_forensics.services.watermark.extractor import (
    detect_watermark,
    extract_watermark,
    has_watermark,
)
from fledgely_forensics.services.watermark.image_codec import (
    ImageCodec,
    JpegCodec,
    PngCodec,
    RawImage,
    default_codec,
    get_codec,
)
from fledgely_forensics.services.watermark.models import (
    DetectionResult,
    EmbeddedImage,
    WatermarkCapacityError,
    WatermarkConfig,
    WatermarkPayload,
)

__all__ = [
    "DetectionResult",
    "EmbeddedImage",
    "ImageCodec",
    "JpegCodec",
    "PngCodec",
    "RawImage",
    "WatermarkCapacityError",
    "WatermarkConfig",
    "WatermarkPayload",
    "default_codec",
    "detect_watermark",
    "embed_watermark",
    "embed_watermark_image",
    "extract_watermark",
    "get_codec",
    "get_payload_bit_length",
    "has_watermark",
    "has_watermark_capacity",
    "required_pixel_count",
]
