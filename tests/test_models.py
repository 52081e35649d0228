"""
Test Bitmap, EnhancementSettings and the pipeline state machine
"""
import numpy as np
import pytest

from photo_enhancer.models.bitmap import Bitmap
from photo_enhancer.models.enhancement_settings import EnhancementSettings, clamp_setting
from photo_enhancer.models.pipeline_state import PipelineEvent, PipelineState, next_state
from photo_enhancer.services.sharpening_service import SharpeningService


class TestBitmap:
    """Test the immutable RGBA raster"""

    def test_from_buffer_roundtrip(self):
        data = bytes(range(2 * 3 * 4))
        bmp = Bitmap.from_buffer(2, 3, data)
        assert (bmp.width, bmp.height) == (2, 3)
        assert bmp.buffer == data
        # row-major: second pixel of first row starts at byte 4
        assert tuple(bmp.pixels[0, 1]) == (4, 5, 6, 7)

    def test_buffer_length_must_match(self):
        with pytest.raises(ValueError):
            Bitmap.from_buffer(2, 2, bytes(15))

    def test_non_positive_dimensions_rejected(self):
        with pytest.raises(ValueError):
            Bitmap.from_buffer(0, 2, b"")

    def test_shape_and_dtype_validated(self):
        with pytest.raises(ValueError):
            Bitmap(np.zeros((2, 2, 3), dtype=np.uint8))
        with pytest.raises(ValueError):
            Bitmap(np.zeros((2, 2, 4), dtype=np.float32))

    def test_pixels_are_read_only(self):
        bmp = Bitmap.filled(2, 2, (1, 2, 3, 255))
        with pytest.raises(ValueError):
            bmp.pixels[0, 0, 0] = 9

    def test_source_array_is_copied(self):
        arr = np.zeros((2, 2, 4), dtype=np.uint8)
        bmp = Bitmap(arr)
        arr[0, 0, 0] = 200
        assert bmp.pixels[0, 0, 0] == 0

    def test_equality(self):
        assert Bitmap.filled(3, 2, (5, 5, 5, 255)) == Bitmap.filled(3, 2, (5, 5, 5, 255))
        assert Bitmap.filled(3, 2, (5, 5, 5, 255)) != Bitmap.filled(2, 3, (5, 5, 5, 255))


class TestEnhancementSettings:
    """Test defaults and clamping"""

    def test_defaults(self):
        s = EnhancementSettings()
        assert (s.brightness, s.contrast, s.sharpness) == (110, 120, 130)

    def test_brightness_clamped_to_upper_bound(self):
        s = EnhancementSettings()
        s.brightness = 200
        assert s.brightness == 140

    def test_sharpness_clamped_to_lower_bound(self):
        s = EnhancementSettings()
        s.sharpness = 50
        assert s.sharpness == 100

    def test_constructor_clamps(self):
        s = EnhancementSettings(brightness=10, contrast=999, sharpness=250)
        assert (s.brightness, s.contrast, s.sharpness) == (80, 160, 200)

    def test_values_rounded_to_integer_percent(self):
        assert clamp_setting("contrast", 120.6) == 121
        assert isinstance(clamp_setting("contrast", "95"), int)

    def test_update_rejects_unknown_fields(self):
        with pytest.raises(KeyError):
            EnhancementSettings().update(gamma=3)

    def test_infinite_values_clamped(self):
        s = EnhancementSettings()
        s.brightness = float('inf')
        assert s.brightness == 140
        s.brightness = float('-inf')
        assert s.brightness == 80
        s.update(sharpness=1e999)
        assert s.sharpness == 200

    def test_huge_value_clamped(self):
        assert clamp_setting("contrast", 10 ** 400) == 160

    def test_nan_rejected(self):
        with pytest.raises(ValueError):
            clamp_setting("brightness", float('nan'))

    def test_sharpening_amount(self):
        assert SharpeningService.amount_for(EnhancementSettings(sharpness=100).sharpness) == 0
        assert SharpeningService.amount_for(EnhancementSettings(sharpness=150).sharpness) == 0.5
        assert SharpeningService.amount_for(EnhancementSettings(sharpness=200).sharpness) == 1

    def test_copy_is_independent(self):
        s = EnhancementSettings()
        c = s.copy()
        c.brightness = 90
        assert s.brightness == 110
        assert c != s


class TestStateMachine:
    """Test the pure transition function"""

    @pytest.mark.parametrize("state,event,expected", [
        (PipelineState.IDLE, PipelineEvent.LOAD, PipelineState.LOADED),
        (PipelineState.LOADED, PipelineEvent.ENHANCE, PipelineState.PROCESSING),
        (PipelineState.PROCESSING, PipelineEvent.COMPLETE, PipelineState.ENHANCED),
        (PipelineState.ENHANCED, PipelineEvent.EDIT_SETTINGS, PipelineState.EDITING_SETTINGS),
        (PipelineState.EDITING_SETTINGS, PipelineEvent.ENHANCE, PipelineState.PROCESSING),
    ])
    def test_happy_path(self, state, event, expected):
        assert next_state(state, event) is expected

    @pytest.mark.parametrize("state", list(PipelineState))
    def test_reset_from_anywhere(self, state):
        assert next_state(state, PipelineEvent.RESET) is PipelineState.IDLE

    @pytest.mark.parametrize("state,event", [
        (PipelineState.IDLE, PipelineEvent.ENHANCE),
        (PipelineState.PROCESSING, PipelineEvent.ENHANCE),
        (PipelineState.ENHANCED, PipelineEvent.ENHANCE),
        (PipelineState.LOADED, PipelineEvent.EDIT_SETTINGS),
        (PipelineState.LOADED, PipelineEvent.COMPLETE),
    ])
    def test_rejected_events(self, state, event):
        assert next_state(state, event) is None
