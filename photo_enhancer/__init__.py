"""Photo enhancement pipeline: tonal adjustment, Laplacian sharpening, before/after comparison."""

__version__ = "1.0.0"
