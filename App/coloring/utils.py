"""Utility functions for buffer conversion, encoding and colors.

AIDEV-NOTE: This module contains helper functions shared by the pipeline
stages: moving between PIL images and RasterBuffers, resizing, encoding
and color parsing.
"""

import io

import numpy as np
from PIL import Image, ImageColor

from errors import InvalidInputError
from models import WHITE, RasterBuffer


def buffer_from_image(image: Image.Image) -> RasterBuffer:
    """Convert a PIL image of any mode into an RGBA RasterBuffer."""
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return RasterBuffer(np.asarray(image, dtype=np.uint8))


def buffer_to_image(buffer: RasterBuffer) -> Image.Image:
    """Convert a RasterBuffer into a new RGBA PIL image."""
    return Image.fromarray(np.array(buffer.pixels), mode="RGBA")


def fit_to_width(buffer: RasterBuffer, max_width: int) -> RasterBuffer:
    """Downscale a buffer so its width does not exceed max_width.

    Args:
        buffer: Source buffer
        max_width: Maximum width in pixels

    Returns:
        The original buffer if it already fits, otherwise a resized copy

    AIDEV-NOTE: Mirrors the editing canvas limit. Images are never upscaled.
    """
    if max_width <= 0:
        raise InvalidInputError(f"max_width must be positive, got {max_width}")
    if buffer.width <= max_width:
        return buffer

    ratio = max_width / buffer.width
    new_width = round(buffer.width * ratio)
    new_height = max(1, round(buffer.height * ratio))
    return resize_buffer(buffer, new_width, new_height)


def resize_buffer(buffer: RasterBuffer, width: int, height: int) -> RasterBuffer:
    """Resample a buffer to exactly width x height pixels."""
    if width <= 0 or height <= 0:
        raise InvalidInputError(f"Cannot resize to {width}x{height}")
    if buffer.is_empty:
        raise InvalidInputError("Cannot resize an empty buffer")
    if (width, height) == buffer.size:
        return buffer
    image = buffer_to_image(buffer).resize((width, height), Image.Resampling.LANCZOS)
    return buffer_from_image(image)


def flatten_onto(buffer: RasterBuffer, color: "tuple[int, int, int, int]" = WHITE) -> Image.Image:
    """Return an RGB image of the buffer composited over a solid color."""
    background = Image.new("RGBA", buffer.size, color)
    background.alpha_composite(buffer_to_image(buffer))
    return background.convert("RGB")


def encode_buffer(buffer: RasterBuffer, image_format: str = "PNG", quality: int = 95) -> bytes:
    """Encode a buffer as PNG or JPEG bytes.

    JPEG has no alpha channel, so the buffer is flattened onto white first.
    """
    image_format = image_format.upper()
    out = io.BytesIO()
    if image_format in ("JPEG", "JPG"):
        flatten_onto(buffer).save(out, format="JPEG", quality=quality)
    elif image_format == "PNG":
        buffer_to_image(buffer).save(out, format="PNG")
    else:
        raise InvalidInputError(f"Unsupported image format: {image_format}")
    return out.getvalue()


def parse_color(value: str) -> "tuple[int, int, int]":
    """Parse a CSS color ('#RRGGBB', '#RGB', 'rgb(r, g, b)' or a name
    such as 'black') into an RGB tuple.

    Raises:
        InvalidInputError: If the string is not a recognised color
    """
    try:
        rgb = ImageColor.getrgb(value.strip())
    except ValueError as e:
        raise InvalidInputError(f"Unrecognised color: {value!r}") from e
    return rgb[:3]  # drop alpha from '#RRGGBBAA' and rgba()


def color_to_hex(color: "tuple[int, int, int]") -> str:
    """Format an RGB tuple as '#rrggbb'."""
    r, g, b = color[:3]
    return f"#{int(r):02x}{int(g):02x}{int(b):02x}"


def relative_luminance(color: "tuple[int, int, int]") -> float:
    """BT.601 luma of an RGB color, 0 (black) to 255 (white)."""
    r, g, b = color[:3]
    return 0.299 * r + 0.587 * g + 0.114 * b

