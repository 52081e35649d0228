from __future__ import annotations
import logging

import numpy as np

from ..models.bitmap import Bitmap

logger = logging.getLogger(__name__)


class ComparisonService:
    """Before/after split view helpers."""

    @staticmethod
    def ratio_from_position(x: float, left: float, width: float) -> float:
        """Pointer x inside a container spanning [left, left+width] → ratio in [0,100]."""
        if width <= 0:
            raise ValueError(f"Container width must be positive, got {width}")
        return max(0.0, min(100.0, (x - left) / width * 100.0))

    @staticmethod
    def split_column(width: int, ratio: float) -> int:
        return int(round(width * max(0.0, min(100.0, ratio)) / 100.0))

    def render(self, original: Bitmap, enhanced: Bitmap, ratio: float) -> Bitmap:
        """
        Enhanced pixels on the left *ratio* percent of the width,
        original pixels on the rest.
        """
        if (original.width, original.height) != (enhanced.width, enhanced.height):
            raise ValueError(
                f"Size mismatch: original {original.width}x{original.height}, "
                f"enhanced {enhanced.width}x{enhanced.height}"
            )
        split = self.split_column(original.width, ratio)
        composite = np.array(original.pixels)
        composite[:, :split] = enhanced.pixels[:, :split]
        return Bitmap(composite)


class ComparisonDrag:
    """
    Scoped drag gesture on the comparison divider.

    Converts pointer positions into ratios and forwards them to *on_ratio*
    only while the gesture is active.  Used as a context manager, so the
    subscription is released when the gesture ends or the block raises.

        with ComparisonDrag(session.set_comparison_ratio, left=0, width=800) as drag:
            drag.move(412)
    """

    def __init__(self, on_ratio, *, left: float, width: float):
        if width <= 0:
            raise ValueError(f"Container width must be positive, got {width}")
        self._on_ratio = on_ratio
        self.left = left
        self.width = width
        self.active = False
        self.last_ratio: float | None = None

    def __enter__(self) -> ComparisonDrag:
        self.active = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False

    def move(self, x: float) -> float | None:
        if not self.active:
            logger.debug("Ignoring pointer move outside an active drag")
            return None
        ratio = ComparisonService.ratio_from_position(x, self.left, self.width)
        self.last_ratio = self._on_ratio(ratio)
        return self.last_ratio

    def release(self) -> None:
        self.active = False
