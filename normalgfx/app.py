from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from normalgfx.controllers.conversion_controller import ConversionController
from normalgfx.models.conversion_model import (
    ConversionRequest,
    CropSpec,
    InputMode,
    Resolution,
    TuningParams,
)
from normalgfx.models.errors import ConversionError

logger = logging.getLogger(__name__)


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )


def build_parser() -> argparse.ArgumentParser:
    defaults = ConversionRequest()
    parser = argparse.ArgumentParser(
        prog="normalgfx",
        description=(
            "Convert normal maps or depth maps into PICO-8 [gfx] sprite strings.\n"
            "Each source pixel is encoded as a pair of 4-bit values (Y slope, X slope); "
            "8 is flat, 0 is void.\n"
            "Passing an existing .txt sprite instead of an image reports its resolution and histogram."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("input", help="Source image (any format Pillow reads) or a saved .txt sprite")
    parser.add_argument(
        "--mode",
        choices=[m.value for m in InputMode],
        default=defaults.mode.value,
        help="normal: R=X slope, G=Y slope. depth: greyscale height, black is void",
    )
    parser.add_argument(
        "--resolution",
        type=int,
        choices=[r.value for r in Resolution],
        default=defaults.resolution.value,
        help="Target square size in source pixels",
    )
    parser.add_argument("--zoom", type=float, default=defaults.crop.zoom, help="Crop size (0-1], 1 = largest square")
    parser.add_argument("--pan-x", type=float, default=defaults.crop.pan_x, help="Horizontal crop position [0-1]")
    parser.add_argument("--pan-y", type=float, default=defaults.crop.pan_y, help="Vertical crop position [0-1]")
    parser.add_argument(
        "--gradient-factor",
        type=float,
        default=defaults.params.gradient_factor,
        help="Slope multiplier [0.1-5.0]",
    )
    parser.add_argument(
        "--alpha-threshold",
        type=int,
        default=defaults.params.alpha_threshold,
        help="Pixels with alpha below this become void [0-255]",
    )
    output = parser.add_mutually_exclusive_group()
    output.add_argument("-o", "--output", help="Write the sprite string to this file")
    output.add_argument(
        "-O",
        "--output-dir",
        help="Write the sprite string to pico8_map_<res>x<res>.txt in this directory",
    )
    parser.add_argument("--preview", help="Save a PNG of the source with the crop overlay")
    parser.add_argument("--histogram-png", help="Save a PNG bar chart of slope values 1-15")
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Overwrite existing files",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging.")
    return parser


class ConverterApp:
    def __init__(self, controller: Optional[ConversionController] = None) -> None:
        self._controller = controller or ConversionController()
        self._parser = build_parser()

    def run(self, argv: Optional[Sequence[str]] = None) -> int:
        args = self._parser.parse_args(argv)
        configure_logging(args.verbose)
        try:
            if Path(args.input).suffix.lower() == ".txt":
                return self._inspect(Path(args.input))
            return self._convert(args)
        except ConversionError as exc:
            print(exc, file=sys.stderr)
            return 1

    def _inspect(self, path: Path) -> int:
        resolution, histogram = self._controller.inspect_sprite(path)
        print(f"{path}: {resolution.value}x{resolution.value} ({resolution.sprite_format} sprite)")
        print(f"histogram ({histogram.total} values): {histogram.summary()}")
        return 0

    def _convert(self, args: argparse.Namespace) -> int:
        request = ConversionRequest(
            crop=CropSpec(zoom=args.zoom, pan_x=args.pan_x, pan_y=args.pan_y),
            mode=InputMode(args.mode),
            resolution=Resolution.parse(args.resolution),
            params=TuningParams(
                gradient_factor=args.gradient_factor,
                alpha_threshold=args.alpha_threshold,
            ),
        )
        image = self._controller.load(args.input)
        result = self._controller.convert(image, request)
        logger.info("histogram: %s", result.histogram.summary())

        sprite_target: Optional[Path] = None
        if args.output:
            sprite_target = Path(args.output)
            if sprite_target.is_dir():
                sprite_target = sprite_target / result.download_name
        elif args.output_dir:
            sprite_target = Path(args.output_dir) / result.download_name
        preview_target = Path(args.preview) if args.preview else None
        histogram_target = Path(args.histogram_png) if args.histogram_png else None

        # all conflicts are reported before anything is written
        targets = [t for t in (sprite_target, preview_target, histogram_target) if t is not None]
        self._controller.ensure_writable(targets, args.force)

        if sprite_target is not None:
            self._controller.write_sprite(result, sprite_target, force=args.force)
        else:
            print(result.sprite)
        if preview_target is not None:
            self._controller.write_preview(image, request.crop, preview_target, force=args.force)
        if histogram_target is not None:
            self._controller.write_histogram(result.histogram, histogram_target, force=args.force)
        return 0
