"""Coloring Page Maker - Main entry point.

Commands:
    lineart   Convert a photo to black-on-white line art (PNG)
    trace     Trace a photo's line art to SVG outlines
    export    Build a print-ready A4 PDF (or page PNGs)
    palette   Suggest paint swatches from a photo, or show the saved palette
    config    Show, change or reset the saved configuration
"""

import argparse
import sys
from pathlib import Path

from coloring import ColoringPageProcessor
from coloring.utils import resize_buffer
from config_manager import ConfigManager, set_config_value
from errors import ColoringPageError
from models import ColoringConfig
from page_export import PngPageSink, save_artwork_png


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser for all sub-commands."""
    parser = argparse.ArgumentParser(
        prog="coloring-page",
        description="Turn photographs into printable coloring pages.",
    )
    parser.add_argument("--config", type=Path, help="Path to config JSON (default: ~/.coloring_page_config.json)")
    sub = parser.add_subparsers(dest="command", required=True)

    lineart = sub.add_parser("lineart", help="Convert a photo to line art PNG")
    lineart.add_argument("input", type=Path, help="Input image")
    lineart.add_argument("--out", "-o", type=Path, default=Path("lineart.png"), help="Output PNG (default: lineart.png)")
    lineart.add_argument("--threshold", "-t", type=float, help="Edge magnitude threshold (default: 100)")
    lineart.add_argument("--paint", type=Path, help="Paint layer PNG to merge under the lines")

    trace = sub.add_parser("trace", help="Trace line art to SVG")
    trace.add_argument("input", type=Path, help="Input image")
    trace.add_argument("--out", "-o", type=Path, default=Path("lineart.svg"), help="Output SVG (default: lineart.svg)")
    trace.add_argument("--threshold", "-t", type=float, help="Edge magnitude threshold (default: 100)")
    trace.add_argument("--from-photo", action="store_true", help="Trace the photo directly instead of its line art")

    export = sub.add_parser("export", help="Export a print-ready A4 document")
    export.add_argument("input", type=Path, help="Input image")
    export.add_argument("--out", "-o", type=Path, default=Path("coloring-a4.pdf"), help="Output file (default: coloring-a4.pdf)")
    export.add_argument("--copies", "-c", type=int, help="Copies per page (default: 1)")
    export.add_argument("--pages", type=int, default=1, help="Number of pages (default: 1)")
    export.add_argument("--dpi", type=int, help="Print resolution (default: 300)")
    export.add_argument("--threshold", "-t", type=float, help="Edge magnitude threshold (default: 100)")
    export.add_argument("--vector", action="store_true", help="Trace lines to vectors before printing")
    export.add_argument("--paint", type=Path, help="Paint layer PNG to merge under the lines")
    export.add_argument("--png", action="store_true", help="Write page PNGs instead of a PDF")

    palette = sub.add_parser("palette", help="Suggest paint colors from a photo, or show the saved palette")
    palette.add_argument("input", type=Path, nargs="?", help="Input image (omit to show the saved palette)")
    palette.add_argument("--colors", "-n", type=int, default=8, help="Number of swatches (default: 8)")

    config = sub.add_parser("config", help="Show or edit the saved configuration")
    config_sub = config.add_subparsers(dest="action", required=True)
    config_sub.add_parser("show", help="Print the current configuration")
    config_set = config_sub.add_parser("set", help="Change one value")
    config_set.add_argument("key")
    config_set.add_argument("value")
    config_sub.add_parser("reset", help="Restore defaults")

    return parser


def _apply_overrides(config: ColoringConfig, args: argparse.Namespace) -> ColoringConfig:
    if getattr(args, "threshold", None) is not None:
        config.edge_threshold = args.threshold
    if getattr(args, "dpi", None) is not None:
        config.dpi = args.dpi
    if getattr(args, "copies", None) is not None:
        config.copies_per_page = args.copies
    return config


def _load_paint(processor: ColoringPageProcessor, path: Path | None, size: "tuple[int, int]"):
    if path is None:
        return None
    paint = processor.load_image(path, fit=False)
    if paint.size != size:
        print(f"Warning: paint layer is {paint.width}x{paint.height}, resizing to {size[0]}x{size[1]}")
        paint = resize_buffer(paint, *size)
    return paint


def cmd_lineart(processor: ColoringPageProcessor, args: argparse.Namespace) -> int:
    source = processor.load_image(args.input)
    line_art = processor.convert_to_line_art(source)
    paint = _load_paint(processor, args.paint, source.size)
    if paint is not None:
        line_art = processor.compose(line_art=line_art, paint_layer=paint)
    save_artwork_png(line_art, args.out)
    print(f"Saved line art to: {args.out}")
    return 0


def cmd_trace(processor: ColoringPageProcessor, args: argparse.Namespace) -> int:
    source = processor.load_image(args.input)
    target = source if args.from_photo else processor.convert_to_line_art(source)
    vector = processor.trace(target)
    args.out.write_text(vector.svg, encoding="utf-8")
    print(f"Saved vector outlines to: {args.out}")
    return 0


def cmd_export(processor: ColoringPageProcessor, args: argparse.Namespace) -> int:
    if args.png:
        processor.page_sink = PngPageSink()
        if args.out.suffix.lower() == ".pdf":
            args.out = args.out.with_suffix(".png")

    paint = None
    if args.paint is not None:
        source = processor.load_image(args.input)
        paint = _load_paint(processor, args.paint, source.size)

    result = processor.process(
        args.input,
        args.out,
        copies_per_page=processor.config.copies_per_page,
        page_count=args.pages,
        use_vector=args.vector,
        paint_layer=paint,
    )
    print(f"Edge pixels: {result.edge_count}")
    return 0


def cmd_palette(processor: ColoringPageProcessor, args: argparse.Namespace) -> int:
    if args.input is None:
        colors = processor.config.palette
    else:
        colors = processor.suggest_palette(processor.load_image(args.input), args.colors)
    for color in colors:
        print(color)
    return 0


def cmd_config(manager: ConfigManager, config: ColoringConfig, args: argparse.Namespace) -> int:
    if args.action == "show":
        print(f"Config file: {manager.config_path}")
        for key, value in vars(config).items():
            print(f"  {key} = {value}")
        return 0

    if args.action == "set":
        try:
            set_config_value(config, args.key, args.value)
        except (KeyError, ValueError) as e:
            print(f"Error: {e}")
            return 2
    else:
        config = ColoringConfig()

    ok, error = manager.save(config)
    if not ok:
        print(f"Error: could not save configuration: {error}")
        return 1
    print(f"✓ Saved configuration to {manager.config_path}")
    return 0


def main(argv: "list[str] | None" = None) -> int:
    """Run the coloring page CLI."""
    args = build_parser().parse_args(argv)

    manager = ConfigManager(args.config) if args.config else ConfigManager()
    config = manager.load()

    if args.command == "config":
        return cmd_config(manager, config, args)

    processor = ColoringPageProcessor(_apply_overrides(config, args))
    commands = {
        "lineart": cmd_lineart,
        "trace": cmd_trace,
        "export": cmd_export,
        "palette": cmd_palette,
    }
    try:
        return commands[args.command](processor, args)
    except ColoringPageError as e:
        print(f"Error: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
