"""Value objects and errors shared by the watermark embedder and extractor.

Both :class:`WatermarkPayload` and :class:`WatermarkConfig` are immutable,
per-call objects.  Config fields left unset fall back to the values in
:mod:`fledgely_forensics.config`, so a deployment can rotate the secret key
or tune strength/repetitions through the environment without code changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from fledgely_forensics.config import settings
from fledgely_forensics.services.watermark.cells import CELL_AREA, cell_count


# Upper bound for ``strength``: the quantisation step is ``4 * strength`` and
# at least one baseline must fit inside ``[strength, 255 - strength]``.
MAX_STRENGTH = 51
MIN_REPETITIONS = 3


class WatermarkCapacityError(ValueError):
    """Raised when an image has too few cells to carry every repetition."""

    def __init__(self, width: int, height: int, required: int) -> None:
        self.width = width
        self.height = height
        self.required = required
        usable = cell_count(width, height) * CELL_AREA
        super().__init__(
            f"Image too small for watermark: {width}x{height} "
            f"({usable} usable pixels) < {required} required pixels"
        )


@dataclass(frozen=True)
class WatermarkPayload:
    """Information recovered from a leaked screenshot."""

    viewer_id: str
    view_timestamp: int
    screenshot_id: str


@dataclass(frozen=True)
class WatermarkConfig:
    """Tunable watermark parameters.

    Only ``secret_key`` is sensitive; embed and extract must use the same
    key, strength and repetitions.
    """

    secret_key: str = field(default_factory=lambda: settings.WATERMARK_SECRET_KEY)
    strength: int = field(default_factory=lambda: settings.WATERMARK_STRENGTH)
    repetitions: int = field(default_factory=lambda: settings.WATERMARK_REPETITIONS)
    output_quality: int = field(default_factory=lambda: settings.WATERMARK_OUTPUT_QUALITY)
    detection_threshold: float = field(
        default_factory=lambda: settings.WATERMARK_DETECTION_THRESHOLD
    )

    def __post_init__(self) -> None:
        if not self.secret_key:
            raise ValueError("secret_key must not be empty")
        if not 1 <= self.strength <= MAX_STRENGTH:
            raise ValueError(f"strength must be between 1 and {MAX_STRENGTH}")
        if self.repetitions < MIN_REPETITIONS:
            raise ValueError(f"repetitions must be at least {MIN_REPETITIONS}")
        if not 1 <= self.output_quality <= 100:
            raise ValueError("output_quality must be between 1 and 100")
        if not 0.0 < self.detection_threshold <= 1.0:
            raise ValueError("detection_threshold must be in (0, 1]")


@dataclass(frozen=True)
class EmbeddedImage:
    """Encoded watermarked image plus the dimensions the embedder decoded."""

    data: bytes
    width: int
    height: int


@dataclass(frozen=True)
class DetectionResult:
    """Outcome of a watermark scan.

    ``confidence`` is the bit agreement of the weakest repetition within
    the best-agreeing strict majority of repetitions.
    """

    payload: WatermarkPayload | None
    confidence: float = 0.0

    @property
    def found(self) -> bool:
        return self.payload is not None
