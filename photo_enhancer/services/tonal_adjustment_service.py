from __future__ import annotations
import logging

import numpy as np

from ..models.bitmap import Bitmap
from ..models.enhancement_settings import EnhancementSettings

logger = logging.getLogger(__name__)

# Fixed +10 % saturation applied on every run
SATURATION_BOOST = 1.10

# Luma weights of the standard saturate() colour matrix
_LUMA = np.array([0.213, 0.715, 0.072])


def saturation_matrix(amount: float) -> np.ndarray:
    """
    3x3 saturate(amount) matrix; amount=1 is identity, 0 is greyscale.
    Every row sums to 1, so neutral greys are left untouched.
    """
    return np.outer(np.ones(3), _LUMA) * (1.0 - amount) + np.eye(3) * amount


class TonalAdjustmentService:
    """
    Brightness → contrast → saturation, each a multiplicative filter on
    float RGB in [0,255] followed by clamping.
    Pure: never mutates the input Bitmap, always returns a new one.
    """

    def __init__(self, saturation: float = SATURATION_BOOST):
        self.saturation = saturation
        self._sat_matrix_t = saturation_matrix(saturation).T

    # ─── Individual filters (float RGB in, float RGB out) ──────────
    @staticmethod
    def apply_brightness(rgb: np.ndarray, factor: float) -> np.ndarray:
        return np.clip(rgb * factor, 0.0, 255.0)

    @staticmethod
    def apply_contrast(rgb: np.ndarray, factor: float) -> np.ndarray:
        # Pivot on mid-grey
        return np.clip((rgb - 127.5) * factor + 127.5, 0.0, 255.0)

    def apply_saturation(self, rgb: np.ndarray) -> np.ndarray:
        return np.clip(rgb @ self._sat_matrix_t, 0.0, 255.0)

    # ─── Public API ────────────────────────────────────────────────
    def adjust(self, bitmap: Bitmap, settings: EnhancementSettings) -> Bitmap:
        rgb = bitmap.rgb.astype(np.float64)
        rgb = self.apply_brightness(rgb, settings.brightness_factor)
        rgb = self.apply_contrast(rgb, settings.contrast_factor)
        rgb = self.apply_saturation(rgb)

        out = np.empty_like(bitmap.pixels)
        out[:, :, :3] = np.rint(rgb).astype(np.uint8)
        out[:, :, 3] = 255

        logger.debug(
            f"Tonal adjustment on {bitmap.width}x{bitmap.height}: "
            f"brightness={settings.brightness}% contrast={settings.contrast}% "
            f"saturation={self.saturation:.0%}"
        )
        return Bitmap(out)
