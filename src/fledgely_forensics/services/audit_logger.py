"""Structured JSON audit logger for forensic watermark events.

Emits structured log entries via structlog whenever a screenshot is
watermarked, scanned, or rejected for lack of capacity.  Every entry carries
an ``audit: true`` flag so production log pipelines can filter on it easily.

Entries never include payload contents (viewer id, screenshot id, view
timestamp): the watermark itself is the record of who viewed what.
"""

from __future__ import annotations

from datetime import datetime, timezone

import structlog

from fledgely_forensics.services.watermark.models import WatermarkConfig

log = structlog.get_logger()


class AuditLogger:
    """Structured audit logger for watermark events.

    All methods are synchronous -- they only emit log lines and perform
    no I/O beyond writing to the configured structlog sink.
    """

    # ------------------------------------------------------------------
    # Embed
    # ------------------------------------------------------------------

    def log_watermark_embedded(
        self,
        width: int,
        height: int,
        config: WatermarkConfig,
        output_bytes: int,
    ) -> None:
        """Log a successful embed."""
        log.info(
            "audit_event",
            event_type="watermark_embedded",
            timestamp=datetime.now(timezone.utc).isoformat(),
            width=width,
            height=height,
            strength=config.strength,
            repetitions=config.repetitions,
            output_bytes=output_bytes,
            audit=True,
        )

    def log_capacity_rejected(self, width: int, height: int, required: int) -> None:
        """Log an embed refused because the image is too small."""
        log.warning(
            "audit_event",
            event_type="watermark_capacity_rejected",
            timestamp=datetime.now(timezone.utc).isoformat(),
            width=width,
            height=height,
            required_pixels=required,
            audit=True,
        )

    # ------------------------------------------------------------------
    # Detection
    # ------------------------------------------------------------------

    def log_watermark_detected(self, found: bool, confidence: float) -> None:
        """Log the outcome of a forensic scan."""
        log.info(
            "audit_event",
            event_type="watermark_detected",
            timestamp=datetime.now(timezone.utc).isoformat(),
            found=found,
            confidence=round(confidence, 4),
            audit=True,
        )
