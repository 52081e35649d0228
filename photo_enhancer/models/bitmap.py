from __future__ import annotations
from dataclasses import dataclass
import numpy as np


@dataclass(frozen=True, eq=False)
class Bitmap:
    """
    Immutable RGBA raster.
    pixels has shape (H, W, 4), dtype uint8, row-major, RGBA order.
    The array is flagged read-only on creation; stages build new Bitmaps.
    """
    pixels: np.ndarray

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.dtype != np.uint8:
            raise ValueError(f"Bitmap pixels must be uint8, got {pixels.dtype}")
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(f"Bitmap pixels must have shape (H, W, 4), got {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"Bitmap dimensions must be positive, got {pixels.shape[1]}x{pixels.shape[0]}")

        # Own a private, contiguous copy so nobody can mutate us through an alias
        pixels = np.array(pixels, dtype=np.uint8, order="C", copy=True)
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    # ── Construction helpers ─────────────────────────────────────────
    @classmethod
    def from_buffer(cls, width: int, height: int, data) -> Bitmap:
        """Build a Bitmap from a flat row-major RGBA buffer of width*height*4 bytes."""
        if width < 1 or height < 1:
            raise ValueError(f"Bitmap dimensions must be positive, got {width}x{height}")
        flat = np.frombuffer(bytes(data), dtype=np.uint8)
        expected = width * height * 4
        if flat.size != expected:
            raise ValueError(f"Buffer length {flat.size} does not match {width}x{height}x4 = {expected}")
        return cls(flat.reshape(height, width, 4))

    @classmethod
    def filled(cls, width: int, height: int, rgba=(0, 0, 0, 255)) -> Bitmap:
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:] = rgba
        return cls(pixels)

    # ── Accessors ────────────────────────────────────────────────────
    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def buffer(self) -> bytes:
        """Flat RGBA bytes, length width*height*4."""
        return self.pixels.tobytes()

    @property
    def rgb(self) -> np.ndarray:
        return self.pixels[:, :, :3]

    @property
    def alpha(self) -> np.ndarray:
        return self.pixels[:, :, 3]

    def __eq__(self, other):
        if not isinstance(other, Bitmap):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and np.array_equal(self.pixels, other.pixels)

    def __repr__(self):
        return f"Bitmap({self.width}x{self.height})"
