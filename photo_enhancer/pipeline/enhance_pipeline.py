"""
Enhancement Pipeline
Runs the tonal adjustment stage and then the sharpening stage on a source
bitmap.  The tonal stage always finishes before sharpening starts, and each
stage hands a freshly allocated Bitmap to the next one.
"""

import logging
import time

from ..models.bitmap import Bitmap
from ..models.enhancement_settings import EnhancementSettings
from ..services.tonal_adjustment_service import TonalAdjustmentService
from ..services.sharpening_service import SharpeningService

logger = logging.getLogger(__name__)


def enhance_bitmap(
    source: Bitmap,
    settings: EnhancementSettings,
    *,
    tonal_service: TonalAdjustmentService | None = None,
    sharpening_service: SharpeningService | None = None,
) -> Bitmap:
    """
    Apply the full enhancement to *source* and return the final bitmap.

    1. Tonal adjustment (brightness, contrast, fixed saturation boost)
    2. Laplacian sharpening, skipped when sharpness <= 100

    Args:
        source: Decoded source bitmap (never modified)
        settings: Slider values to apply
        tonal_service: Tonal stage (defaults to a fresh TonalAdjustmentService)
        sharpening_service: Sharpening stage (defaults to a fresh SharpeningService)

    Returns:
        Bitmap: The enhanced result, same dimensions as *source*
    """
    tonal_service = tonal_service or TonalAdjustmentService()
    sharpening_service = sharpening_service or SharpeningService()

    started = time.perf_counter()

    adjusted = tonal_service.adjust(source, settings)
    result = sharpening_service.sharpen(adjusted, settings.sharpness)

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"Enhanced {source.width}x{source.height} "
        f"(brightness={settings.brightness}%, contrast={settings.contrast}%, "
        f"sharpness={settings.sharpness}%) in {elapsed_ms:.1f} ms"
    )
    return result
