from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from normalgfx.models.errors import ImageLoadError
from normalgfx.services.image_service import ImageService


def test_load_image_converts_to_rgba(tmp_path: Path) -> None:
    path = tmp_path / "normal.png"
    Image.new("RGB", (40, 24), (128, 128, 255)).save(path)

    data = ImageService().load_image(path)

    assert data.path == path
    assert (data.width, data.height) == (40, 24)
    assert data.mode == "RGB"
    assert data.pil_image.mode == "RGBA"
    assert data.pil_image.getpixel((0, 0)) == (128, 128, 255, 255)
    assert data.size_bytes == path.stat().st_size


def test_load_image_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ImageLoadError):
        ImageService().load_image(tmp_path / "missing.png")


def test_load_image_rejects_non_image(tmp_path: Path) -> None:
    path = tmp_path / "notes.png"
    path.write_text("not really a png")

    with pytest.raises(ImageLoadError):
        ImageService().load_image(path)


def test_from_array_wraps_rgba_buffer() -> None:
    pixels = np.zeros((3, 5, 4), dtype=np.uint8)
    pixels[1, 2] = (1, 2, 3, 4)

    data = ImageService().from_array(pixels)

    assert (data.width, data.height) == (5, 3)
    assert data.path is None
    assert data.pil_image.getpixel((2, 1)) == (1, 2, 3, 4)


def test_from_array_rejects_non_rgba_shape() -> None:
    with pytest.raises(ImageLoadError):
        ImageService().from_array(np.zeros((4, 4, 3), dtype=np.uint8))


def test_from_image_keeps_source_mode() -> None:
    data = ImageService().from_image(Image.new("L", (8, 6), 77))

    assert data.mode == "L"
    assert data.pil_image.mode == "RGBA"
    assert data.pil_image.getpixel((0, 0)) == (77, 77, 77, 255)
