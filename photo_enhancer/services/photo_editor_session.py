from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Tuple, Union
import logging
import os
import threading
import time

from dotenv import load_dotenv

from ..models.bitmap import Bitmap
from ..models.enhancement_settings import EnhancementSettings
from ..models.errors import InvalidInputError, PipelineNotReadyError
from ..models.pipeline_state import PipelineEvent, PipelineState, next_state
from ..pipeline.enhance_pipeline import enhance_bitmap
from .image_service import ImageService
from .tonal_adjustment_service import TonalAdjustmentService
from .sharpening_service import SharpeningService

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_COMPARISON_RATIO = 50.0


class PhotoEditorSession:
    """
    Orchestrates one editing session: source image, settings, result,
    comparison ratio and the Idle → Loaded → Processing → Enhanced state machine.

    *   The pipeline runs synchronously inside enhance(); the session then
        stays in PROCESSING until a minimum display duration has passed.
    *   The deadline is checked cooperatively (poll()/state), so reset() or a
        new load simply drops the pending run and nothing stale can land.
    *   Settings survive reset(); only the image and result are cleared.
    """

    def __init__(
        self,
        session_id: str | None = None,
        *,
        settings: EnhancementSettings | None = None,
        min_processing_duration: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        image_service: ImageService | None = None,
        tonal_service: TonalAdjustmentService | None = None,
        sharpening_service: SharpeningService | None = None,
    ):
        self.session_id = session_id
        self.settings = settings or EnhancementSettings()
        if min_processing_duration is None:
            min_processing_duration = float(os.getenv("PROCESSING_MIN_DURATION_S", "1.5"))
        self.min_processing_duration = max(0.0, min_processing_duration)
        self._clock = clock

        self.image_service = image_service or ImageService()
        self.tonal_service = tonal_service or TonalAdjustmentService()
        self.sharpening_service = sharpening_service or SharpeningService()

        self._lock = threading.RLock()
        self._state = PipelineState.IDLE
        self._source: Optional[Bitmap] = None
        self._result: Optional[Bitmap] = None
        self._result_settings: Optional[EnhancementSettings] = None
        self._pending: Optional[Bitmap] = None
        self._pending_settings: Optional[EnhancementSettings] = None
        self._ready_at: Optional[float] = None
        self._comparison_ratio = DEFAULT_COMPARISON_RATIO
        self.runs = 0  # pipeline executions, reused results excluded

    # ─── State ─────────────────────────────────────────────────────
    @property
    def state(self) -> PipelineState:
        self.poll()
        return self._state

    @property
    def source(self) -> Optional[Bitmap]:
        return self._source

    @property
    def comparison_ratio(self) -> float:
        return self._comparison_ratio

    def _apply(self, event: PipelineEvent) -> bool:
        target = next_state(self._state, event)
        if target is None:
            logger.debug(f"[{self.session_id}] ignoring {event.value} in state {self._state.value}")
            return False
        logger.debug(f"[{self.session_id}] {self._state.value} --{event.value}--> {target.value}")
        self._state = target
        return True

    def _drop_pending(self):
        self._pending = None
        self._pending_settings = None
        self._ready_at = None

    # ─── Loading ───────────────────────────────────────────────────
    def load_bitmap(self, bitmap: Bitmap) -> None:
        """Make *bitmap* the new source; discards any result or in-flight run."""
        with self._lock:
            if self._state is PipelineState.PROCESSING:
                logger.info(f"[{self.session_id}] discarding in-flight enhancement for new image")
            self._drop_pending()
            self._source = bitmap
            self._result = None
            self._result_settings = None
            self._comparison_ratio = DEFAULT_COMPARISON_RATIO
            self._apply(PipelineEvent.LOAD)
            logger.info(f"[{self.session_id}] loaded {bitmap.width}x{bitmap.height} image")

    def load_bytes(self, data: bytes) -> bool:
        """Decode and load; undecodable data leaves the session untouched."""
        try:
            bitmap = self.image_service.decode(data)
        except InvalidInputError as e:
            logger.warning(f"[{self.session_id}] rejected input: {e}")
            return False
        self.load_bitmap(bitmap)
        return True

    def load_file(self, path: Union[str, Path]) -> bool:
        try:
            bitmap = self.image_service.load(path)
        except InvalidInputError as e:
            logger.warning(f"[{self.session_id}] rejected {path}: {e}")
            return False
        self.load_bitmap(bitmap)
        return True

    # ─── Settings ──────────────────────────────────────────────────
    def update_settings(self, **values) -> EnhancementSettings:
        """Clamped update; takes effect on the next enhance()."""
        with self._lock:
            self.settings.update(**values)
            return self.settings

    # ─── Triggers ──────────────────────────────────────────────────
    def enhance(self) -> bool:
        """
        Start an enhancement run.
        Only effective in LOADED / EDITING_SETTINGS; returns False otherwise.
        """
        with self._lock:
            self.poll()
            previous = self._state
            if next_state(previous, PipelineEvent.ENHANCE) is None:
                logger.debug(f"[{self.session_id}] enhance ignored in state {previous.value}")
                return False

            # Run before transitioning so a failing stage leaves the state untouched
            snapshot = self.settings.copy()
            if (previous is PipelineState.EDITING_SETTINGS
                    and self._result is not None
                    and self._result_settings == snapshot):
                logger.info(f"[{self.session_id}] settings unchanged, reusing previous result")
                self._pending = self._result
            else:
                self._pending = enhance_bitmap(
                    self._source,
                    snapshot,
                    tonal_service=self.tonal_service,
                    sharpening_service=self.sharpening_service,
                )
                self.runs += 1

            self._pending_settings = snapshot
            self._ready_at = self._clock() + self.min_processing_duration
            self._apply(PipelineEvent.ENHANCE)
            self.poll()
            return True

    def poll(self) -> bool:
        """Complete a pending run whose deadline has passed. Returns True on completion."""
        with self._lock:
            if self._state is not PipelineState.PROCESSING or self._ready_at is None:
                return False
            if self._clock() < self._ready_at:
                return False

            self._result = self._pending
            self._result_settings = self._pending_settings
            self._drop_pending()
            self._comparison_ratio = DEFAULT_COMPARISON_RATIO
            self._apply(PipelineEvent.COMPLETE)
            logger.info(f"[{self.session_id}] enhancement ready")
            return True

    def wait(self, sleep: Callable[[float], None] = time.sleep) -> PipelineState:
        """Block until a pending run completes (no-op outside PROCESSING)."""
        while True:
            with self._lock:
                if self._state is not PipelineState.PROCESSING or self.poll():
                    return self._state
                remaining = self._ready_at - self._clock()
            sleep(max(remaining, 0.0))

    def return_to_settings(self) -> bool:
        with self._lock:
            if not self._apply(PipelineEvent.EDIT_SETTINGS):
                return False
            self._comparison_ratio = DEFAULT_COMPARISON_RATIO
            return True

    def reset(self) -> None:
        """Close the image. Settings keep their last values."""
        with self._lock:
            self._drop_pending()
            self._source = None
            self._result = None
            self._result_settings = None
            self._comparison_ratio = DEFAULT_COMPARISON_RATIO
            self._apply(PipelineEvent.RESET)
            logger.info(f"[{self.session_id}] session reset")

    # ─── Comparison & export ───────────────────────────────────────
    def _require_enhanced(self, operation: str):
        state = self.state
        if state is not PipelineState.ENHANCED:
            raise PipelineNotReadyError(operation, state)

    def set_comparison_ratio(self, value: float) -> float:
        with self._lock:
            self._require_enhanced("set_comparison_ratio")
            self._comparison_ratio = max(0.0, min(100.0, float(value)))
            return self._comparison_ratio

    def get_final_bitmap(self) -> Bitmap:
        with self._lock:
            self._require_enhanced("get_final_bitmap")
            return self._result

    def comparison_view(self) -> Tuple[Bitmap, Bitmap, float]:
        """(original, enhanced, ratio) read under one lock for the split view."""
        with self._lock:
            self._require_enhanced("comparison_view")
            return self._source, self._result, self._comparison_ratio

    def export_png(self) -> bytes:
        return self.image_service.encode_png(self.get_final_bitmap())

    def save_result(self, path: Union[str, Path, None] = None) -> Path:
        return self.image_service.save(self.get_final_bitmap(), path)

    # ─── View-layer snapshot ───────────────────────────────────────
    def snapshot(self) -> dict:
        with self._lock:
            state = self.state
            return {
                'session_id': self.session_id,
                'state': state.value,
                'settings': self.settings.as_dict(),
                'comparison_ratio': self._comparison_ratio,
                'width': self._source.width if self._source else None,
                'height': self._source.height if self._source else None,
                'can_enhance': state in (PipelineState.LOADED, PipelineState.EDITING_SETTINGS),
                'can_export': state is PipelineState.ENHANCED,
            }
