from pathlib import Path
from typing import Union
from io import BytesIO
import logging
import os

import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv

from ..models.bitmap import Bitmap
from ..models.errors import InvalidInputError

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_VALID_EXTS = ".png,.jpg,.jpeg,.bmp,.webp,.tif,.tiff"


class ImageRepository:
    """
    Handles decoding/encoding and file I/O for Bitmap entities.
    Everything above this layer only sees RGBA Bitmaps.
    """
    def __init__(self):
        raw_exts = os.getenv("VALID_IMAGE_EXTENSIONS", DEFAULT_VALID_EXTS)
        self.VALID_EXTS = {ext.strip().lower() for ext in raw_exts.split(",") if ext.strip()}

    def is_supported_path(self, path: Union[str, Path]) -> bool:
        return Path(path).suffix.lower() in self.VALID_EXTS

    @staticmethod
    def _to_rgba(arr: np.ndarray) -> np.ndarray:
        """OpenCV decode result (GRAY / BGR / BGRA, 8 or 16 bit) → RGBA uint8."""
        if arr.dtype == np.uint16:
            arr = (arr >> 8).astype(np.uint8)
        elif arr.dtype != np.uint8:
            raise InvalidInputError(f"Unsupported sample type: {arr.dtype}")

        if arr.ndim == 2:
            return cv2.cvtColor(arr, cv2.COLOR_GRAY2RGBA)
        channels = arr.shape[2]
        if channels == 1:
            return cv2.cvtColor(np.ascontiguousarray(arr[:, :, 0]), cv2.COLOR_GRAY2RGBA)
        if channels == 3:
            return cv2.cvtColor(arr, cv2.COLOR_BGR2RGBA)
        if channels == 4:
            return cv2.cvtColor(arr, cv2.COLOR_BGRA2RGBA)
        raise InvalidInputError(f"Unsupported channel count: {channels}")

    def decode(self, data: bytes) -> Bitmap:
        """Decode encoded image bytes (PNG, JPEG, ...) into a Bitmap."""
        if not data:
            raise InvalidInputError("Empty image data")

        arr = cv2.imdecode(np.frombuffer(data, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise InvalidInputError("Data is not a decodable image")

        return Bitmap(self._to_rgba(arr))

    def load(self, path: Union[str, Path]) -> Bitmap:
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"Image not found: {path}")
        if not self.is_supported_path(path):
            raise InvalidInputError(f"Unsupported image extension: {path.suffix or '<none>'}")

        arr = cv2.imread(str(path), cv2.IMREAD_UNCHANGED)
        if arr is None:
            raise InvalidInputError(f"Image unreadable: {path}")

        bitmap = Bitmap(self._to_rgba(arr))
        logger.debug(f"Loaded {path.name}: {bitmap.width}x{bitmap.height}")
        return bitmap

    @staticmethod
    def encode_png(bitmap: Bitmap) -> bytes:
        buffer = BytesIO()
        PILImage.fromarray(bitmap.pixels).save(buffer, format="PNG")
        return buffer.getvalue()

    @staticmethod
    def save(bitmap: Bitmap, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        PILImage.fromarray(bitmap.pixels).save(path, format="PNG")
        return path
