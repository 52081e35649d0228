from __future__ import annotations
from dataclasses import dataclass, asdict
import logging
import math

logger = logging.getLogger(__name__)

NEUTRAL = 100

# field -> (min, max); all values are integer percentages
SETTING_BOUNDS = {
    "brightness": (80, 140),
    "contrast":   (80, 160),
    "sharpness":  (100, 200),
}


def clamp_setting(name: str, value) -> int:
    """Clamp *value* into the domain of *name* and round it to an integer percentage."""
    low, high = SETTING_BOUNDS[name]
    try:
        requested = float(value)
    except OverflowError:
        # integers too large for a float
        requested = math.inf if value > 0 else -math.inf
    if math.isnan(requested):
        raise ValueError(f"{name} must be a number, got NaN")
    clamped = int(round(max(low, min(high, requested))))
    if not low <= requested <= high:
        logger.debug(f"{name}={value} out of range [{low}, {high}], clamped to {clamped}")
    return clamped


@dataclass
class EnhancementSettings:
    """
    Value-object holding the three user-facing enhancement sliders
    in percent (100 = neutral).
    Every assignment is clamped, so the fields never leave their domains.
    """
    brightness: int = 110      # [80 , 140]
    contrast:   int = 120      # [80 , 160]
    sharpness:  int = 130      # [100, 200], <= 100 disables sharpening

    def __setattr__(self, name, value):
        if name in SETTING_BOUNDS:
            value = clamp_setting(name, value)
        super().__setattr__(name, value)

    # ── Derived factors ──────────────────────────────────────────────
    @property
    def brightness_factor(self) -> float:
        return self.brightness / 100

    @property
    def contrast_factor(self) -> float:
        return self.contrast / 100

    # ── Helpers ──────────────────────────────────────────────────────
    def update(self, **values) -> None:
        """Assign any subset of the fields; unknown names are rejected."""
        unknown = set(values) - set(SETTING_BOUNDS)
        if unknown:
            raise KeyError(f"Unknown setting(s): {', '.join(sorted(unknown))}")
        for name, value in values.items():
            setattr(self, name, value)

    def copy(self) -> EnhancementSettings:
        return EnhancementSettings(**asdict(self))

    def as_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def neutral(cls) -> EnhancementSettings:
        return cls(brightness=NEUTRAL, contrast=NEUTRAL, sharpness=NEUTRAL)
