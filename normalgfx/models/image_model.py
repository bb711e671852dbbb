"""Модели данных для исходных изображений.

Принципы:
- SRP: только структура данных, без логики обработки.
- Чистый код: неизменяемость (`frozen=True`) для предсказуемости.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image


@dataclass(frozen=True)
class ImageData:
    """Неизменяемая модель исходного изображения (RGBA, 8 бит на канал) и его метаданные.

    Fields:
        path: Путь к исходному файлу, если изображение загружено с диска.
        pil_image: Декодированное изображение PIL в режиме "RGBA".
        width: Ширина, px.
        height: Высота, px.
        mode: Режим PIL исходного файла до приведения к RGBA, например "RGB".
        size_bytes: Размер файла, если доступен.
    """
    path: Optional[Path]
    pil_image: Image.Image
    width: int
    height: int
    mode: str
    size_bytes: Optional[int]
