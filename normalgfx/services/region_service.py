"""Выбор квадратной области исходника и её пересэмплирование в сетку спрайта.

`compute_crop_rect` задаёт единственную формулу кадрирования; её используют и
семплер, и отрисовка рамки предпросмотра, поэтому превью и результат не расходятся.
"""
from __future__ import annotations

import logging
import math
import numbers

import numpy as np
from PIL import Image

from normalgfx.models.conversion_model import CropRect, CropSpec, ResampledGrid, Resolution
from normalgfx.models.errors import EmptySourceError, InvalidCropError
from normalgfx.models.image_model import ImageData

logger = logging.getLogger(__name__)


def _check_unit_range(name: str, value: float, allow_zero: bool) -> None:
    if isinstance(value, bool) or not isinstance(value, numbers.Real) or not math.isfinite(value):
        raise InvalidCropError(f"{name} must be a finite number, got {value!r}")
    low_ok = value >= 0.0 if allow_zero else value > 0.0
    if not low_ok or value > 1.0:
        bounds = "[0, 1]" if allow_zero else "(0, 1]"
        raise InvalidCropError(f"{name} must be in {bounds}, got {value}")


def compute_crop_rect(width: int, height: int, crop: CropSpec) -> CropRect:
    """Вычисляет квадрат кадра в пикселях исходника.

    size = min(w, h) * zoom; левый верхний угол двигается в пределах
    (w - size, h - size) пропорционально pan_x / pan_y.

    Raises:
        EmptySourceError: если ширина или высота равны нулю.
        InvalidCropError: если поля кадра вне диапазонов или квадрат вырожден.
    """
    if width <= 0 or height <= 0:
        raise EmptySourceError(f"Source image has zero area: {width}x{height}")
    _check_unit_range("zoom", crop.zoom, allow_zero=False)
    _check_unit_range("pan_x", crop.pan_x, allow_zero=True)
    _check_unit_range("pan_y", crop.pan_y, allow_zero=True)

    size = min(width, height) * crop.zoom
    if size <= 0.0:
        raise InvalidCropError(f"Crop square is degenerate (size={size})")

    max_x = width - size
    max_y = height - size
    return CropRect(
        x=max_x * crop.pan_x,
        y=max_y * crop.pan_y,
        size=size,
        image_width=width,
        image_height=height,
    )


class RegionService:
    """Семплер области: кадр -> квадратная RGBA-сетка заданного разрешения."""

    def __init__(self, resample: Image.Resampling = Image.Resampling.BOX) -> None:
        self._resample = resample

    def sample(self, image: ImageData, crop: CropSpec, resolution: int) -> ResampledGrid:
        """Вырезает квадрат и масштабирует его до resolution x resolution.

        Args:
            image: Исходное изображение; не изменяется.
            crop: Нормализованный кадр.
            resolution: 16, 32 или 64.

        Returns:
            Новая `ResampledGrid` (uint8, форма (res, res, 4)).
        """
        side = Resolution.parse(resolution).value
        rect = compute_crop_rect(image.width, image.height, crop)
        return ResampledGrid(pixels=self._resize(image.pil_image, rect, side))

    def sample_rect(self, image: ImageData, rect: CropRect, resolution: int) -> ResampledGrid:
        side = Resolution.parse(resolution).value
        return ResampledGrid(pixels=self._resize(image.pil_image, rect, side))

    def _resize(self, pil_image: Image.Image, rect: CropRect, side: int) -> np.ndarray:
        src = pil_image if pil_image.mode == "RGBA" else pil_image.convert("RGBA")
        x0, y0, x1, y1 = rect.box
        # float error may push the far edge a hair past the image; PIL rejects that
        box = (x0, y0, min(x1, float(rect.image_width)), min(y1, float(rect.image_height)))
        logger.debug("Sampling box %s -> %dx%d", box, side, side)
        resized = src.resize((side, side), self._resample, box=box)
        return np.asarray(resized, dtype=np.uint8).copy()
