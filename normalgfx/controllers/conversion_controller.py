"""Контроллер конвертации: оркестрация сервисов загрузки, семплирования и кодирования.

SOLID:
- SRP: класс связывает сервисы и вывод результатов (без логики обработки пикселей).
- DIP: зависит от сервисов как от ролей; конкретные реализации подставляются полями.
Clean Code:
- Обработчики компактны; вычисления вынесены в сервисы.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from PIL import Image

from normalgfx.models.conversion_model import (
    ConversionRequest,
    ConversionResult,
    CropSpec,
    Histogram,
    Resolution,
)
from normalgfx.models.errors import ConversionError
from normalgfx.models.image_model import ImageData
from normalgfx.services.encoder_service import EncoderService, decode_sprite, histogram_from_nibbles
from normalgfx.services.image_service import ImageService
from normalgfx.services.preview_service import PreviewService
from normalgfx.services.region_service import RegionService, compute_crop_rect

logger = logging.getLogger(__name__)


@dataclass
class ConversionController:
    """Запускает конвертацию и сохраняет её результаты.

    Ответственности:
    - Загрузка изображений через `ImageService`.
    - Кадрирование и пересэмплирование через `RegionService`.
    - Кодирование через `EncoderService`.
    - Запись текстового спрайта, превью кадра и гистограммы.
    """
    _image_service: ImageService = ImageService()
    _region_service: RegionService = RegionService()
    _encoder_service: EncoderService = EncoderService()
    _preview_service: PreviewService = PreviewService()

    def load(self, file_path: str | Path) -> ImageData:
        return self._image_service.load_image(file_path)

    def convert(self, image: ImageData, request: ConversionRequest) -> ConversionResult:
        """Кадр -> сетка -> строка [gfx]. Исходное изображение не мутирует."""
        resolution = Resolution.parse(request.resolution)
        rect = compute_crop_rect(image.width, image.height, request.crop)
        grid = self._region_service.sample_rect(image, rect, resolution)
        sprite, histogram = self._encoder_service.encode(grid, request.mode, request.params)

        logger.info(
            "Converted %s crop (%.1f, %.1f, size %.1f) -> %s sprite, %d chars",
            image.path or "image",
            rect.x,
            rect.y,
            rect.size,
            resolution.sprite_format,
            len(sprite),
        )
        return ConversionResult(sprite=sprite, histogram=histogram, resolution=resolution, crop_rect=rect)

    def convert_file(self, file_path: str | Path, request: ConversionRequest) -> ConversionResult:
        return self.convert(self.load(file_path), request)

    def inspect_sprite(self, file_path: str | Path) -> tuple[Resolution, Histogram]:
        """Читает сохранённую строку [gfx] и пересчитывает её гистограмму."""
        path = Path(file_path)
        try:
            text = path.read_text(encoding="ascii")
        except (OSError, UnicodeDecodeError) as exc:
            raise ConversionError(f"Cannot read sprite file {path}: {exc}") from exc
        resolution, nibbles = decode_sprite(text)
        return resolution, histogram_from_nibbles(nibbles)

    # ---- Outputs ----
    def write_sprite(self, result: ConversionResult, target: Path, force: bool = False) -> Path:
        """Пишет строку спрайта; `target`-каталог получает имя по умолчанию."""
        if target.is_dir():
            target = target / result.download_name
        self.ensure_writable([target], force)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(result.sprite, encoding="ascii")
        except OSError as exc:
            raise ConversionError(f"Cannot write sprite file {target}: {exc}") from exc
        logger.info("wrote %s", target)
        return target

    def write_preview(self, image: ImageData, crop: CropSpec, target: Path, force: bool = False) -> Path:
        rect = compute_crop_rect(image.width, image.height, crop)
        self.ensure_writable([target], force)
        self._save_png(self._preview_service.render_crop_overlay(image.pil_image, rect), target)
        return target

    def write_histogram(self, histogram: Histogram, target: Path, force: bool = False) -> Path:
        self.ensure_writable([target], force)
        self._save_png(self._preview_service.render_histogram(histogram), target)
        return target

    @staticmethod
    def ensure_writable(targets: Iterable[Path], force: bool) -> None:
        """Проверяет все цели сразу, до первой записи.

        Raises:
            ConversionError: цель повторяется или уже существует (без `force`).
        """
        targets = list(targets)
        seen = set()
        for target in targets:
            key = target.resolve()
            if key in seen:
                raise ConversionError(f"Duplicate output path: {target}")
            seen.add(key)
        conflicts = [str(t) for t in targets if t.exists() and not force]
        if conflicts:
            raise ConversionError(
                "Output files already exist (use --force to overwrite):\n" + "\n".join(conflicts)
            )

    # ---- Helpers ----
    @staticmethod
    def _save_png(image: Image.Image, target: Path) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            image.save(target, format="PNG")
        except OSError as exc:
            raise ConversionError(f"Cannot write image {target}: {exc}") from exc
        logger.info("wrote %s", target)
