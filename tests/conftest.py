"""
Pytest configuration and fixtures
"""
import os
import sys
from io import BytesIO

import numpy as np
import pytest
from PIL import Image as PILImage

# Add project root to path
project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from photo_enhancer.models.bitmap import Bitmap


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def gray_bitmap():
    """4x4 opaque mid-grey (128,128,128,255)"""
    return Bitmap.filled(4, 4, (128, 128, 128, 255))


@pytest.fixture
def random_bitmap():
    """Deterministic 7x5 opaque noise image"""
    rng = np.random.default_rng(1234)
    pixels = rng.integers(0, 256, size=(5, 7, 4), dtype=np.uint8)
    pixels[:, :, 3] = 255
    return Bitmap(pixels)


def encode_png(pixels: np.ndarray) -> bytes:
    buffer = BytesIO()
    PILImage.fromarray(pixels).save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    """8x6 RGB PNG with a horizontal gradient"""
    pixels = np.zeros((6, 8, 3), dtype=np.uint8)
    pixels[:, :, 0] = np.linspace(0, 255, 8, dtype=np.uint8)
    pixels[:, :, 1] = 90
    pixels[:, :, 2] = 200
    return encode_png(pixels)


@pytest.fixture
def app(monkeypatch):
    """Flask app with instant processing and an empty session table."""
    monkeypatch.setenv("PROCESSING_MIN_DURATION_S", "0")
    from photo_enhancer.api_server import app as flask_app, sessions
    flask_app.config['TESTING'] = True
    sessions.clear()
    yield flask_app
    sessions.clear()


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()
