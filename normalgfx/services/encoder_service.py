"""Кодирование сетки в строку спрайта [gfx]: наклоны по Y и X в виде пары полубайтов.

Принципы:
- Чистая функция от (сетка, режим, параметры): без состояния, без ввода-вывода.
- Векторизация через numpy, как и остальная обработка изображений в проекте.
"""
from __future__ import annotations

import logging
from typing import Tuple, Union

import numpy as np

from normalgfx.models.conversion_model import (
    HISTOGRAM_SIZE,
    Histogram,
    InputMode,
    ResampledGrid,
    Resolution,
    TuningParams,
)
from normalgfx.models.errors import InvalidTuningError, SpriteFormatError, UnsupportedResolutionError

logger = logging.getLogger(__name__)

GFX_OPEN = "[gfx]"
GFX_CLOSE = "[/gfx]"
HEX_DIGITS = "0123456789abcdef"

MIN_GRADIENT_FACTOR = 0.1
MAX_GRADIENT_FACTOR = 5.0

# Depth maps: empirically tuned; keep literal values
DEPTH_SENSITIVITY = 0.5
DEPTH_BOOST = 5.0
DEPTH_VOID_LEVEL = 8

ArrayOrScalar = Union[np.ndarray, int]


def _to_nibble(clamped: np.ndarray) -> np.ndarray:
    """[-1, 1] -> [1, 15]; -1 -> 1, 0 -> 8, 1 -> 15."""
    # floor(x + 0.5): half-up rounding, not Python's round-half-even
    mapped = np.floor(((clamped + 1.0) / 2.0) * 14.0 + 0.5) + 1.0
    return np.clip(mapped, 1, 15).astype(np.uint8)


def _unwrap(nibbles: np.ndarray) -> ArrayOrScalar:
    return int(nibbles) if nibbles.ndim == 0 else nibbles


def quantize_channel(value, factor: float) -> ArrayOrScalar:
    """Канал нормали (0..255) -> полубайт 1..15.

    Знак инвертирован: большое значение канала даёт отрицательный наклон.
    Принимает скаляр (возвращает int) или массив (возвращает uint8-массив).
    """
    arr = np.asarray(value, dtype=np.float64)
    normalized = -(arr - 127.5) / 127.5
    amplified = np.clip(normalized * factor, -1.0, 1.0)
    return _unwrap(_to_nibble(amplified))


def quantize_gradient(delta, factor: float) -> ArrayOrScalar:
    """Разность яркостей соседей (-255..255) -> полубайт 1..15."""
    arr = np.asarray(delta, dtype=np.float64)
    normalized = (arr / 255.0) * DEPTH_SENSITIVITY
    inverted = -normalized
    amplified = np.clip(inverted * factor * DEPTH_BOOST, -1.0, 1.0)
    return _unwrap(_to_nibble(amplified))


def luma_buffer(pixels: np.ndarray) -> np.ndarray:
    """Взвешенная яркость 0.299R + 0.587G + 0.114B, усечённая до целого 0..255."""
    rgb = pixels[..., :3].astype(np.float64)
    luma = rgb[..., 0] * 0.299 + rgb[..., 1] * 0.587 + rgb[..., 2] * 0.114
    return np.clip(np.trunc(luma), 0, 255).astype(np.int32)


def _validate_params(params: TuningParams) -> None:
    factor = params.gradient_factor
    if not (MIN_GRADIENT_FACTOR <= factor <= MAX_GRADIENT_FACTOR):
        raise InvalidTuningError(
            f"gradient_factor must be in [{MIN_GRADIENT_FACTOR}, {MAX_GRADIENT_FACTOR}], got {factor}"
        )
    threshold = params.alpha_threshold
    if isinstance(threshold, bool) or int(threshold) != threshold or not (0 <= threshold <= 255):
        raise InvalidTuningError(f"alpha_threshold must be an integer in [0, 255], got {threshold}")


def _validate_grid(grid: ResampledGrid) -> Resolution:
    shape = grid.pixels.shape
    if len(shape) != 3 or shape[2] != 4 or shape[0] != shape[1]:
        raise UnsupportedResolutionError(f"Grid must be square RGBA (side, side, 4), got {shape}")
    return Resolution.parse(shape[0])


class EncoderService:
    def encode(
        self,
        grid: ResampledGrid,
        mode: InputMode,
        params: TuningParams,
    ) -> Tuple[str, Histogram]:
        """Кодирует сетку в строку [gfx] и считает гистограмму значений.

        Порядок обхода: построчно сверху вниз, слева направо; для каждого
        пикселя сначала наклон по Y, затем по X.

        Raises:
            UnsupportedResolutionError: сетка не квадратная или сторона не 16/32/64.
            InvalidTuningError: параметры вне диапазонов.
        """
        resolution = _validate_grid(grid)
        _validate_params(params)
        mode = InputMode(mode)

        pixels = grid.pixels
        opaque = pixels[..., 3] >= params.alpha_threshold

        if mode is InputMode.NORMAL:
            val_x = quantize_channel(pixels[..., 0], params.gradient_factor)
            val_y = quantize_channel(pixels[..., 1], params.gradient_factor)
            solid = opaque
        else:
            val_x, val_y, non_black = self._depth_slopes(pixels, params.gradient_factor)
            # transparency and near-black height are separate gates
            solid = opaque & non_black

        val_x = np.where(solid, val_x, 0).astype(np.uint8)
        val_y = np.where(solid, val_y, 0).astype(np.uint8)

        counts = np.bincount(
            np.concatenate((val_x.ravel(), val_y.ravel())),
            minlength=HISTOGRAM_SIZE,
        )
        histogram = Histogram(counts=tuple(int(c) for c in counts))

        pairs = np.stack((val_y, val_x), axis=-1).ravel()
        stream = "".join(HEX_DIGITS[v] for v in pairs.tolist())
        sprite = f"{GFX_OPEN}{resolution.header}{stream}{GFX_CLOSE}"

        logger.debug("Encoded %dx%d grid in %s mode: %s", resolution, resolution, mode.value, histogram.summary())
        return sprite, histogram

    def _depth_slopes(
        self, pixels: np.ndarray, factor: float
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """Центральные разности по яркости с клампом к краям."""
        luma = luma_buffer(pixels)
        p = np.pad(luma, ((1, 1), (1, 1)), mode="edge")
        dx = p[1:-1, 2:] - p[1:-1, :-2]
        dy = p[2:, 1:-1] - p[:-2, 1:-1]
        return (
            quantize_gradient(dx, factor),
            quantize_gradient(dy, factor),
            luma > DEPTH_VOID_LEVEL,
        )


def decode_sprite(text: str) -> Tuple[Resolution, np.ndarray]:
    """Разбирает строку [gfx] обратно в полубайты.

    Returns:
        (разрешение, массив uint8 формы (side, side, 2) с парами (val_y, val_x)).

    Raises:
        SpriteFormatError: неверная обёртка, заголовок, длина или символы.
    """
    body = text.strip()
    if not (body.startswith(GFX_OPEN) and body.endswith(GFX_CLOSE)):
        raise SpriteFormatError("Sprite must be wrapped in [gfx]...[/gfx]")
    body = body[len(GFX_OPEN):-len(GFX_CLOSE)]

    header, stream = body[:4], body[4:]
    by_header = {res.header: res for res in Resolution}
    if header not in by_header:
        raise SpriteFormatError(f"Unknown sprite header: {header!r}")
    resolution = by_header[header]

    expected = 2 * resolution.value * resolution.value
    if len(stream) != expected:
        raise SpriteFormatError(
            f"Expected {expected} hex digits for {resolution.value}x{resolution.value}, got {len(stream)}"
        )
    try:
        nibbles = [HEX_DIGITS.index(ch) for ch in stream]
    except ValueError as exc:
        raise SpriteFormatError("Sprite stream must contain lowercase hex digits only") from exc

    arr = np.array(nibbles, dtype=np.uint8).reshape(resolution.value, resolution.value, 2)
    return resolution, arr


def histogram_from_nibbles(nibbles: np.ndarray) -> Histogram:
    counts = np.bincount(np.asarray(nibbles, dtype=np.uint8).ravel(), minlength=HISTOGRAM_SIZE)
    return Histogram(counts=tuple(int(c) for c in counts))
