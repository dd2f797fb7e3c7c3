import io

import numpy as np
import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from fledgely_forensics.config import settings
from fledgely_forensics.main import app
from fledgely_forensics.services.watermark import WatermarkPayload

TEST_API_KEY = "test-forensics-key"


def make_png(width: int, height: int, seed: int | None = 0, color=None) -> bytes:
    """PNG bytes of random noise, or a flat *color* when given."""
    if color is not None:
        img = Image.new("RGB", (width, height), color)
    else:
        rng = np.random.default_rng(seed)
        data = rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)
        img = Image.fromarray(data, "RGB")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_screenshot_png(width: int, height: int) -> bytes:
    """Smooth gradient background with a few flat panels, like an app screen."""
    ys, xs = np.mgrid[0:height, 0:width]
    data = np.stack(
        [
            40 + 160 * xs / max(width - 1, 1),
            60 + 120 * ys / max(height - 1, 1),
            np.full((height, width), 180.0),
        ],
        axis=-1,
    )
    data[height // 8 : height // 3, width // 10 : width - width // 10] = (250, 250, 250)
    data[height // 2 : height // 2 + height // 6, width // 5 : width // 2] = (20, 90, 200)
    return array_to_png(np.rint(data).astype(np.uint8))


def jpeg_recompress(data: bytes, quality: int) -> bytes:
    """Decode *data* and save it again as 4:4:4 JPEG at *quality*."""
    with Image.open(io.BytesIO(data)) as img:
        rgb = img.convert("RGB")
    buf = io.BytesIO()
    rgb.save(buf, format="JPEG", quality=quality, subsampling=0)
    return buf.getvalue()


def png_to_array(data: bytes) -> np.ndarray:
    with Image.open(io.BytesIO(data)) as img:
        return np.array(img.convert("RGB"), dtype=np.uint8)


def array_to_png(arr: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(arr, "RGB").save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def sample_payload() -> WatermarkPayload:
    return WatermarkPayload(
        viewer_id="user123abc",
        view_timestamp=1703001600000,
        screenshot_id="screenshot456",
    )


@pytest.fixture
def noise_png() -> bytes:
    return make_png(100, 100, seed=42)


@pytest.fixture
def api_key(monkeypatch):
    monkeypatch.setattr(settings, "FORENSICS_API_KEY", TEST_API_KEY)
    return TEST_API_KEY


@pytest.fixture
async def client():
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
