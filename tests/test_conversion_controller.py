from pathlib import Path

import numpy as np
import pytest
from PIL import Image

from normalgfx.controllers.conversion_controller import ConversionController
from normalgfx.models.conversion_model import (
    ConversionRequest,
    CropSpec,
    InputMode,
    Resolution,
    TuningParams,
)
from normalgfx.models.errors import ConversionError, InvalidCropError, SpriteFormatError
from normalgfx.services.image_service import ImageService


def _flat_normal_map(tmp_path: Path) -> Path:
    path = tmp_path / "flat.png"
    Image.new("RGBA", (96, 64), (128, 128, 255, 255)).save(path)
    return path


def test_convert_file_flat_normal_map(tmp_path: Path) -> None:
    request = ConversionRequest(resolution=Resolution.R16)

    result = ConversionController().convert_file(_flat_normal_map(tmp_path), request)

    assert result.sprite == "[gfx]2010" + "8" * 512 + "[/gfx]"
    assert result.histogram.as_dict() == {8: 512}
    assert result.resolution is Resolution.R16
    assert result.crop_rect.size == 64
    assert result.crop_rect.x == 16
    assert result.download_name == "pico8_map_16x16.txt"


def test_convert_depth_request() -> None:
    pixels = np.zeros((64, 64, 4), dtype=np.uint8)
    pixels[..., 3] = 255
    image = ImageService().from_array(pixels)
    request = ConversionRequest(
        crop=CropSpec(zoom=0.5, pan_x=0.0, pan_y=0.0),
        mode=InputMode.DEPTH,
        resolution=Resolution.R32,
        params=TuningParams(gradient_factor=2.0, alpha_threshold=0),
    )

    result = ConversionController().convert(image, request)

    # black height map is void everywhere
    assert result.histogram.as_dict() == {0: 2 * 32 * 32}
    assert result.sprite.startswith("[gfx]4020")


def test_convert_rejects_bad_crop(tmp_path: Path) -> None:
    request = ConversionRequest(crop=CropSpec(zoom=2.0))

    with pytest.raises(InvalidCropError):
        ConversionController().convert_file(_flat_normal_map(tmp_path), request)


def test_write_sprite_into_directory_uses_download_name(tmp_path: Path) -> None:
    controller = ConversionController()
    result = controller.convert_file(_flat_normal_map(tmp_path), ConversionRequest())

    target = controller.write_sprite(result, tmp_path)

    assert target == tmp_path / "pico8_map_32x32.txt"
    assert target.read_text(encoding="ascii") == result.sprite


def test_write_sprite_refuses_to_overwrite_without_force(tmp_path: Path) -> None:
    controller = ConversionController()
    result = controller.convert_file(_flat_normal_map(tmp_path), ConversionRequest())
    target = tmp_path / "out.txt"
    target.write_text("keep me")

    with pytest.raises(ConversionError):
        controller.write_sprite(result, target)
    assert target.read_text() == "keep me"

    controller.write_sprite(result, target, force=True)
    assert target.read_text(encoding="ascii") == result.sprite


def test_write_preview_and_histogram(tmp_path: Path) -> None:
    controller = ConversionController()
    image = controller.load(_flat_normal_map(tmp_path))
    request = ConversionRequest(crop=CropSpec(zoom=0.5, pan_x=1.0, pan_y=0.0))
    result = controller.convert(image, request)

    preview = controller.write_preview(image, request.crop, tmp_path / "out" / "preview.png")
    chart = controller.write_histogram(result.histogram, tmp_path / "out" / "histogram.png")

    with Image.open(preview) as im:
        assert im.size == (96, 64)
    with Image.open(chart) as im:
        assert im.format == "PNG"


def test_inspect_sprite_reads_saved_output(tmp_path: Path) -> None:
    controller = ConversionController()
    result = controller.convert_file(_flat_normal_map(tmp_path), ConversionRequest(resolution=Resolution.R64))
    saved = controller.write_sprite(result, tmp_path / "sprite.txt")

    resolution, histogram = controller.inspect_sprite(saved)

    assert resolution is Resolution.R64
    assert histogram == result.histogram


def test_inspect_sprite_rejects_garbage(tmp_path: Path) -> None:
    path = tmp_path / "bad.txt"
    path.write_text("[gfx]nope[/gfx]")

    with pytest.raises(SpriteFormatError):
        ConversionController().inspect_sprite(path)
