from __future__ import annotations
import os
import logging

import cv2
import numpy as np
from dotenv import load_dotenv

from ..models.bitmap import Bitmap
from ..models.enhancement_settings import NEUTRAL

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

BORDER_ZERO = "zero"    # border left as the zero-initialised buffer (transparent black)
BORDER_COPY = "copy"    # border copied through from the input
BORDER_MODES = (BORDER_ZERO, BORDER_COPY)


class SharpeningService:
    """
    Laplacian sharpening with a 3x3 kernel:

         0    -a     0
        -a   1+4a   -a
         0    -a     0

    Only interior pixels are computed.  The output buffer starts zeroed,
    so with the default border mode the one-pixel frame stays (0,0,0,0).
    """

    def __init__(self, border_mode: str | None = None):
        border_mode = (border_mode or os.getenv("SHARPEN_BORDER_MODE", BORDER_ZERO)).lower()
        if border_mode not in BORDER_MODES:
            raise ValueError(f"Unknown border mode '{border_mode}', expected one of {BORDER_MODES}")
        self.border_mode = border_mode

    @staticmethod
    def amount_for(sharpness: int) -> float:
        return (sharpness - NEUTRAL) / 100

    @staticmethod
    def build_kernel(amount: float) -> np.ndarray:
        return np.array([
            [0.0,     -amount,            0.0],
            [-amount, 1.0 + 4.0 * amount, -amount],
            [0.0,     -amount,            0.0],
        ], dtype=np.float64)

    @staticmethod
    def convolve_interior(pixels: np.ndarray, kernel: np.ndarray) -> np.ndarray:
        """
        Weighted 3x3 sums of the RGB channels for the interior region only.
        Returns float64 of shape (H-2, W-2, 3); empty when H or W < 3.
        """
        h, w = pixels.shape[:2]
        if h < 3 or w < 3:
            return np.empty((max(h - 2, 0), max(w - 2, 0), 3), dtype=np.float64)

        rgb = pixels[:, :, :3].astype(np.float64)
        # filter2D is a correlation; the kernel is symmetric so it equals convolution.
        # Border handling only affects the frame, which is discarded below.
        filtered = cv2.filter2D(rgb, cv2.CV_64F, kernel, borderType=cv2.BORDER_REPLICATE)
        return filtered[1:-1, 1:-1]

    def apply_kernel(self, bitmap: Bitmap, kernel: np.ndarray) -> Bitmap:
        src = bitmap.pixels
        out = np.zeros_like(src)

        interior = self.convolve_interior(src, kernel)
        if interior.size:
            # Saturating round, same as writing into a clamped 8-bit array
            out[1:-1, 1:-1, :3] = np.rint(np.clip(interior, 0.0, 255.0)).astype(np.uint8)
            out[1:-1, 1:-1, 3] = 255

        if self.border_mode == BORDER_COPY:
            out[0, :] = src[0, :]
            out[-1, :] = src[-1, :]
            out[:, 0] = src[:, 0]
            out[:, -1] = src[:, -1]

        return Bitmap(out)

    # ─── Public API ────────────────────────────────────────────────
    def sharpen(self, bitmap: Bitmap, sharpness: int) -> Bitmap:
        """Sharpen *bitmap*; sharpness <= 100 returns the input untouched."""
        amount = self.amount_for(sharpness)
        if amount <= 0:
            return bitmap

        logger.debug(f"Sharpening {bitmap.width}x{bitmap.height} with a={amount:.2f} ({self.border_mode} border)")
        return self.apply_kernel(bitmap, self.build_kernel(amount))
