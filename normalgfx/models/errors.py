"""Иерархия ошибок конвертера.

Все ошибки являются ошибками валидации входных данных и детерминированы,
поэтому вызывающая сторона показывает сообщение, а не повторяет попытку.
"""
from __future__ import annotations


class ConversionError(Exception):
    """Базовая ошибка конвертации."""


class InvalidCropError(ConversionError):
    """Параметры кадрирования вне допустимых диапазонов или квадрат вырожден."""


class EmptySourceError(InvalidCropError):
    """Исходное изображение нулевой площади: кадрировать нечего."""


class UnsupportedResolutionError(ConversionError):
    """Сторона сетки не входит в {16, 32, 64}."""


class InvalidTuningError(ConversionError):
    """gradient_factor или alpha_threshold вне допустимых диапазонов."""


class ImageLoadError(ConversionError):
    """Файл не найден или не распознан как изображение."""


class SpriteFormatError(ConversionError):
    """Строка не является корректной строкой [gfx]...[/gfx]."""
