"""Paint layer creation and freehand stroke rendering."""

from typing import Iterable

import numpy as np
from PIL import Image, ImageDraw

from errors import InvalidInputError
from models import WHITE, PaintMode, RasterBuffer, Stroke

from .utils import buffer_from_image, buffer_to_image, parse_color


def new_paint_layer(width: int, height: int) -> RasterBuffer:
    """Blank opaque white paint layer."""
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Invalid paint layer size: {width}x{height}")
    return RasterBuffer.blank(width, height, WHITE)


def apply_strokes(layer: RasterBuffer, strokes: Iterable[Stroke]) -> RasterBuffer:
    """Render strokes onto a copy of the paint layer.

    Args:
        layer: Existing paint layer
        strokes: Strokes in drawing order

    Returns:
        New RasterBuffer; the input layer is untouched

    AIDEV-NOTE: PAINT strokes replace pixels with the opaque brush color.
    ERASE strokes clear alpha, so the compositor's white background shows
    through. Caps and joins are round.
    """
    image = buffer_to_image(layer)
    for stroke in strokes:
        if stroke.brush_size <= 0:
            raise InvalidInputError(f"Brush size must be positive, got {stroke.brush_size}")
        if not stroke.points:
            continue

        if stroke.mode is PaintMode.ERASE:
            mask = Image.new("L", image.size, 0)
            _draw_stroke(ImageDraw.Draw(mask), stroke, 255)
            pixels = np.array(image)
            pixels[np.asarray(mask) > 0] = (0, 0, 0, 0)
            image = Image.fromarray(pixels, mode="RGBA")
        else:
            r, g, b = parse_color(stroke.color)
            _draw_stroke(ImageDraw.Draw(image), stroke, (r, g, b, 255))

    return buffer_from_image(image)


def _draw_stroke(draw: ImageDraw.ImageDraw, stroke: Stroke, fill) -> None:
    radius = stroke.brush_size / 2
    points = [(float(x), float(y)) for x, y in stroke.points]

    if len(points) > 1:
        draw.line(points, fill=fill, width=int(stroke.brush_size), joint="curve")

    # Round caps and a dot for single-point strokes
    for x, y in (points[0], points[-1]):
        draw.ellipse([x - radius, y - radius, x + radius, y + radius], fill=fill)
