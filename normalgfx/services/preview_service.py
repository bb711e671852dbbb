from __future__ import annotations

from typing import Tuple

from PIL import Image, ImageDraw

from normalgfx.models.conversion_model import FLAT_NIBBLE, CropRect, Histogram

Color = Tuple[int, int, int]

FRAME_COLOR: Color = (236, 72, 153)
BACKGROUND: Color = (15, 23, 42)
AXIS_COLOR: Color = (51, 65, 85)
LABEL_COLOR: Color = (100, 116, 139)
SHADE_ALPHA = 178  # ~0.7


def slope_color(value: int) -> Color:
    """Цвет столбца по удалённости от плоского значения 8."""
    dist = abs(FLAT_NIBBLE - value)
    if dist == 0:
        return (16, 185, 129)
    if dist < 4:
        return (52, 211, 153)
    if dist < 6:
        return (250, 204, 21)
    return (239, 68, 68)


class PreviewService:
    # ---------- Рамка кадра поверх исходника ----------
    def render_crop_overlay(self, image: Image.Image, rect: CropRect) -> Image.Image:
        """
        Затемняет всё вне кадра и рисует рамку с перекрестьем в центре.
        Геометрия берётся из того же `CropRect`, что и у семплера.
        """
        base = image.convert("RGBA")
        # fractions scale to whatever size the preview source has
        left_f, top_f, width_f, height_f = rect.overlay
        x0, y0 = left_f * base.width, top_f * base.height
        x1, y1 = x0 + width_f * base.width, y0 + height_f * base.height
        left, top = int(round(x0)), int(round(y0))
        right = max(left, int(round(x1)) - 1)
        bottom = max(top, int(round(y1)) - 1)

        shade = Image.new("RGBA", base.size, (0, 0, 0, SHADE_ALPHA))
        draw = ImageDraw.Draw(shade)
        # окно кадра остаётся прозрачным
        draw.rectangle((left, top, right, bottom), fill=(0, 0, 0, 0))
        draw.rectangle((left, top, right, bottom), outline=FRAME_COLOR + (255,), width=2)

        cx, cy = (x0 + x1) / 2.0, (y0 + y1) / 2.0
        arm = max(2.0, (x1 - x0) * 0.05)
        cross = FRAME_COLOR + (128,)
        draw.line((cx - arm, cy, cx + arm, cy), fill=cross, width=1)
        draw.line((cx, cy - arm, cx, cy + arm), fill=cross, width=1)

        return Image.alpha_composite(base, shade)

    # ---------- Гистограмма наклонов ----------
    def render_histogram(
        self,
        histogram: Histogram,
        bar_width: int = 16,
        height: int = 192,
        gap: int = 4,
    ) -> Image.Image:
        """
        Столбчатая диаграмма значений 1..15 (0 означает пустоту и не показывается).
        Минимальная высота столбца 4%, подписи шестнадцатеричными цифрами снизу.
        """
        counts = histogram.slope_counts
        max_val = max(max(counts), 1)

        label_h = 16
        pad = 8
        chart_h = height - label_h - pad
        total_w = pad * 2 + len(counts) * bar_width + (len(counts) - 1) * gap
        canvas = Image.new("RGB", (total_w, height), color=BACKGROUND)
        draw = ImageDraw.Draw(canvas)

        baseline = pad + chart_h
        x = pad
        for i, count in enumerate(counts):
            value = i + 1
            pct = max(count / max_val, 0.04)
            bar_h = max(1, int(round(chart_h * pct)))
            draw.rectangle((x, baseline - bar_h, x + bar_width - 1, baseline - 1), fill=slope_color(value))
            label_fill = slope_color(value) if value == FLAT_NIBBLE else LABEL_COLOR
            draw.text((x + bar_width // 2 - 3, baseline + 2), f"{value:X}", fill=label_fill)
            x += bar_width + gap

        draw.line((pad, baseline, total_w - pad, baseline), fill=AXIS_COLOR, width=1)
        return canvas
