"""Модели запроса и результата конвертации.

Принципы:
- SRP: только структуры данных и их тривиальные производные значения.
- Состояние интерфейса (кадр, режим, разрешение, ползунки) передаётся
  неизменяемым `ConversionRequest`, а не разделяемым изменяемым объектом.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Tuple

import numpy as np

from normalgfx.models.errors import UnsupportedResolutionError

HISTOGRAM_SIZE = 16
FLAT_NIBBLE = 8
VOID_NIBBLE = 0


class InputMode(str, Enum):
    NORMAL = "normal"
    DEPTH = "depth"


class Resolution(IntEnum):
    """Допустимые стороны спрайта и их 4-символьные заголовки [gfx]."""
    R16 = 16
    R32 = 32
    R64 = 64

    @property
    def header(self) -> str:
        return _HEADERS[self]

    @property
    def sprite_format(self) -> str:
        # each source pixel becomes two console pixels side by side
        return f"{self.value * 2}x{self.value}"

    @classmethod
    def parse(cls, value: int) -> "Resolution":
        try:
            side = int(value)
            # 16.9 or True must not pass as 16 / 1
            if isinstance(value, bool) or side != value:
                raise ValueError(value)
            return cls(side)
        except (TypeError, ValueError) as exc:
            raise UnsupportedResolutionError(
                f"Unsupported resolution: {value!r} (expected one of 16, 32, 64)"
            ) from exc


_HEADERS: Dict[Resolution, str] = {
    Resolution.R16: "2010",
    Resolution.R32: "4020",
    Resolution.R64: "8040",
}


@dataclass(frozen=True)
class CropSpec:
    """Нормализованное описание кадра.

    Fields:
        zoom: (0, 1]; 1.0 — максимальный вписанный квадрат.
        pan_x: [0, 1]; положение левого края в пределах свободного хода.
        pan_y: [0, 1]; положение верхнего края в пределах свободного хода.
    """
    zoom: float = 1.0
    pan_x: float = 0.5
    pan_y: float = 0.5


@dataclass(frozen=True)
class CropRect:
    """Квадрат в пикселях исходника, вычисленный из `CropSpec`."""
    x: float
    y: float
    size: float
    image_width: int
    image_height: int

    @property
    def box(self) -> Tuple[float, float, float, float]:
        return (self.x, self.y, self.x + self.size, self.y + self.size)

    @property
    def overlay(self) -> Tuple[float, float, float, float]:
        """Геометрия рамки предпросмотра в долях изображения: (left, top, width, height)."""
        return (
            self.x / self.image_width,
            self.y / self.image_height,
            self.size / self.image_width,
            self.size / self.image_height,
        )


@dataclass(frozen=True)
class TuningParams:
    gradient_factor: float = 1.0
    alpha_threshold: int = 10


@dataclass(frozen=True, eq=False)
class ResampledGrid:
    """Квадратная RGBA-сетка `uint8` формы (side, side, 4)."""
    pixels: np.ndarray

    @property
    def side(self) -> int:
        return int(self.pixels.shape[0])


@dataclass(frozen=True)
class Histogram:
    """Частоты значений полубайтов, индекс = значение (0..15)."""
    counts: Tuple[int, ...] = field(default_factory=lambda: (0,) * HISTOGRAM_SIZE)

    def __post_init__(self) -> None:
        if len(self.counts) != HISTOGRAM_SIZE:
            raise ValueError(f"Histogram needs {HISTOGRAM_SIZE} buckets, got {len(self.counts)}")

    def __getitem__(self, nibble: int) -> int:
        return self.counts[nibble]

    def __iter__(self):
        return iter(self.counts)

    def __len__(self) -> int:
        return HISTOGRAM_SIZE

    @property
    def total(self) -> int:
        return sum(self.counts)

    @property
    def slope_counts(self) -> Tuple[int, ...]:
        """Только наклоны 1..15, без пустых (0) значений."""
        return self.counts[1:]

    def as_dict(self) -> Dict[int, int]:
        return {value: count for value, count in enumerate(self.counts) if count}

    def summary(self) -> str:
        return " ".join(f"{value:x}:{count}" for value, count in self.as_dict().items())


@dataclass(frozen=True)
class ConversionRequest:
    crop: CropSpec = CropSpec()
    mode: InputMode = InputMode.NORMAL
    resolution: Resolution = Resolution.R32
    params: TuningParams = TuningParams()


@dataclass(frozen=True)
class ConversionResult:
    sprite: str
    histogram: Histogram
    resolution: Resolution
    crop_rect: CropRect

    @property
    def download_name(self) -> str:
        return f"pico8_map_{self.resolution.value}x{self.resolution.value}.txt"
