"""
Test the photo-enhance command line
"""
import numpy as np
from PIL import Image as PILImage

from photo_enhancer.cli.enhance_single import main

from conftest import encode_png


def test_enhances_file(tmp_path):
    src = tmp_path / "photo.png"
    src.write_bytes(encode_png(np.full((5, 6, 3), 128, dtype=np.uint8)))
    out = tmp_path / "enhanced-photo.png"

    assert main([str(src), "-o", str(out), "--brightness", "100", "--contrast", "100",
                 "--sharpness", "200", "--border-mode", "copy"]) == 0

    with PILImage.open(out) as img:
        pixels = np.asarray(img)
    assert pixels.shape == (5, 6, 4)
    assert (pixels[:, :, :3] == 128).all()
    assert (pixels[:, :, 3] == 255).all()


def test_rejects_non_image(tmp_path):
    src = tmp_path / "notes.txt"
    src.write_text("hello")
    assert main([str(src), "-o", str(tmp_path / "out.png")]) == 1


def test_missing_input(tmp_path):
    assert main([str(tmp_path / "missing.jpg")]) == 1
