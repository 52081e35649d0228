from __future__ import annotations
from pathlib import Path
from typing import Union
import os

from dotenv import load_dotenv

from ..models.bitmap import Bitmap
from ..repositories.image_repository import ImageRepository

# Load environment variables
load_dotenv()


class ImageService:
    """I/O helpers.  No enhancement logic here."""
    def __init__(self):
        self.EXPORT_FILENAME = os.getenv("EXPORT_FILENAME", "enhanced-photo.png")
        self.image_repository = ImageRepository()

    def decode(self, data: bytes) -> Bitmap:
        """Decode uploaded bytes into a Bitmap. Raises InvalidInputError."""
        return self.image_repository.decode(data)

    def load(self, path: Union[str, Path]) -> Bitmap:
        """Load a single image from disk into a Bitmap."""
        return self.image_repository.load(path)

    @staticmethod
    def is_image_mimetype(mimetype: str | None) -> bool:
        return bool(mimetype) and mimetype.lower().startswith("image/")

    def encode_png(self, bitmap: Bitmap) -> bytes:
        return self.image_repository.encode_png(bitmap)

    def save(self, bitmap: Bitmap, path: Union[str, Path, None] = None) -> Path:
        """
        Business-level method to export a bitmap as PNG.
        Defaults to EXPORT_FILENAME in the working directory.
        """
        return self.image_repository.save(bitmap, path or self.EXPORT_FILENAME)

