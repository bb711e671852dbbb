"""Загрузка изображений с диска или из памяти и упаковка метаданных.

Принципы:
- SRP: класс отвечает только за загрузку и базовое извлечение свойств.
- OCP: новые источники (стрим, URL) можно добавить отдельными методами.
- LSP/ISP: возвращает `ImageData` с предсказуемыми полями; интерфейс узкий и конкретный.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import numpy as np
from PIL import Image, UnidentifiedImageError

from normalgfx.models.errors import ImageLoadError
from normalgfx.models.image_model import ImageData

logger = logging.getLogger(__name__)


class ImageService:
    def load_image(self, file_path: str | Path) -> ImageData:
        """Загружает изображение с диска и возвращает его вместе с метаданными.

        Args:
            file_path: Путь до файла изображения.

        Returns:
            `ImageData` c `PIL.Image.Image` (в режиме RGBA), размерами, режимом и размером файла.

        Raises:
            ImageLoadError: если путь не существует, не указывает на файл
                или файл не распознан как изображение.
        """
        path = Path(file_path)
        if not path.exists() or not path.is_file():
            raise ImageLoadError(f"File not found: {path}")

        try:
            with Image.open(path) as opened:
                source_mode = opened.mode
                pil_image = opened.convert("RGBA")
        except UnidentifiedImageError as exc:
            raise ImageLoadError(f"Not an image file: {path}") from exc
        except OSError as exc:
            # truncated or otherwise undecodable data
            raise ImageLoadError(f"Cannot decode image {path}: {exc}") from exc

        width, height = pil_image.size
        try:
            size_bytes: Optional[int] = path.stat().st_size
        except OSError:
            size_bytes = None

        logger.debug("Loaded %s (%dx%d, %s)", path, width, height, source_mode)
        return ImageData(
            path=path,
            pil_image=pil_image,
            width=width,
            height=height,
            mode=source_mode,
            size_bytes=size_bytes,
        )

    def from_image(self, image: Image.Image) -> ImageData:
        """Оборачивает уже декодированное изображение PIL."""
        source_mode = image.mode
        rgba = image if image.mode == "RGBA" else image.convert("RGBA")
        width, height = rgba.size
        return ImageData(
            path=None,
            pil_image=rgba,
            width=width,
            height=height,
            mode=source_mode,
            size_bytes=None,
        )

    def from_array(self, pixels: np.ndarray) -> ImageData:
        """Оборачивает RGBA-буфер формы (height, width, 4), dtype uint8."""
        arr = np.asarray(pixels)
        if arr.ndim != 3 or arr.shape[2] != 4:
            raise ImageLoadError(f"Expected an RGBA array of shape (h, w, 4), got {arr.shape}")
        height, width = int(arr.shape[0]), int(arr.shape[1])
        if height == 0 or width == 0:
            # PIL не создаёт изображения из пустых массивов
            rgba = Image.new("RGBA", (width, height))
        else:
            rgba = Image.fromarray(np.ascontiguousarray(arr, dtype=np.uint8))
        return ImageData(
            path=None,
            pil_image=rgba,
            width=width,
            height=height,
            mode="RGBA",
            size_bytes=None,
        )
