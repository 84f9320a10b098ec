"""Grayscale conversion and gradient edge detection.

AIDEV-NOTE: This module turns a photograph into line-art. Luma is computed
with BT.601 weights, gradients with a fixed 3x3 Sobel kernel pair, and the
gradient magnitude is thresholded into a binary edge mask that is rendered
black on white. All functions are pure: inputs are never modified.
"""

import math

import numpy as np

from errors import InvalidInputError
from models import (
    BLACK,
    DEFAULT_EDGE_THRESHOLD,
    TRANSPARENT,
    WHITE,
    EdgeMask,
    LuminanceField,
    RasterBuffer,
)

# BT.601 luma weights for R, G, B
LUMA_WEIGHTS = (0.299, 0.587, 0.114)

# Sobel kernels, row-major over the (dy, dx) neighbourhood
SOBEL_X = np.array([-1, 0, 1, -2, 0, 2, -1, 0, 1], dtype=np.float64).reshape(3, 3)
SOBEL_Y = np.array([-1, -2, -1, 0, 0, 0, 1, 2, 1], dtype=np.float64).reshape(3, 3)


def to_luminance(buffer: RasterBuffer) -> LuminanceField:
    """Map an RGBA buffer to per-pixel luma, ignoring alpha.

    Args:
        buffer: Source image

    Returns:
        LuminanceField with values in [0, 255]
    """
    rgb = buffer.pixels[:, :, :3].astype(np.float64)
    r_weight, g_weight, b_weight = LUMA_WEIGHTS
    luma = r_weight * rgb[:, :, 0] + g_weight * rgb[:, :, 1] + b_weight * rgb[:, :, 2]
    return LuminanceField(luma)


def gradient_magnitude(luminance: LuminanceField) -> np.ndarray:
    """Sobel gradient magnitude for every interior pixel.

    Returns:
        Array of shape (height - 2, width - 2); empty when either
        dimension is below 3
    """
    values = luminance.values
    height, width = values.shape
    if width < 3 or height < 3:
        return np.zeros((max(0, height - 2), max(0, width - 2)), dtype=np.float64)

    gx = np.zeros((height - 2, width - 2), dtype=np.float64)
    gy = np.zeros_like(gx)

    # Accumulate each kernel tap as a shifted view of the interior
    for ky in range(3):
        for kx in range(3):
            wx = SOBEL_X[ky, kx]
            wy = SOBEL_Y[ky, kx]
            if wx == 0 and wy == 0:
                continue
            window = values[ky:ky + height - 2, kx:kx + width - 2]
            if wx:
                gx += wx * window
            if wy:
                gy += wy * window

    return np.sqrt(gx * gx + gy * gy)


def detect_edges(
    luminance: LuminanceField, threshold: float = DEFAULT_EDGE_THRESHOLD
) -> EdgeMask:
    """Threshold Sobel gradient magnitude into an edge mask.

    Args:
        luminance: Luma field of the source image
        threshold: Magnitude cutoff; a pixel is an edge when M > threshold

    Returns:
        EdgeMask of the same size. Border pixels are never edges.

    Raises:
        InvalidInputError: If the threshold is negative or not finite
    """
    _validate_threshold(threshold)

    mask = np.zeros((luminance.height, luminance.width), dtype=bool)
    if luminance.width >= 3 and luminance.height >= 3:
        mask[1:-1, 1:-1] = gradient_magnitude(luminance) > threshold
    return EdgeMask(mask)


def render_line_art(mask: EdgeMask, transparent_background: bool = False) -> RasterBuffer:
    """Render an edge mask as black strokes.

    Args:
        mask: Edge classification
        transparent_background: Leave non-edge pixels fully transparent
            instead of opaque white, so the result can sit over a paint layer

    Returns:
        New RasterBuffer with the mask's dimensions
    """
    background = TRANSPARENT if transparent_background else WHITE
    pixels = np.empty((mask.height, mask.width, 4), dtype=np.uint8)
    pixels[:, :] = background
    pixels[mask.mask] = BLACK
    return RasterBuffer(pixels)


def convert_to_line_art(
    buffer: RasterBuffer,
    threshold: float = DEFAULT_EDGE_THRESHOLD,
    transparent_background: bool = False,
) -> RasterBuffer:
    """Full photo -> line-art conversion.

    Args:
        buffer: Source image
        threshold: Gradient magnitude cutoff (default 100)
        transparent_background: See render_line_art

    Returns:
        Line-art buffer with the source's dimensions

    Raises:
        InvalidInputError: For an empty image or an invalid threshold
    """
    if buffer.is_empty:
        raise InvalidInputError(
            f"Cannot convert an empty image ({buffer.width}x{buffer.height})"
        )
    mask = detect_edges(to_luminance(buffer), threshold)
    return render_line_art(mask, transparent_background=transparent_background)


def line_art_to_overlay(line_art: RasterBuffer) -> RasterBuffer:
    """Make the white background of a line-art buffer transparent.

    AIDEV-NOTE: Any pixel that is not pure black becomes transparent, so
    opaque line-art can be laid over a paint layer without hiding it.
    """
    pixels = np.array(line_art.pixels)
    is_line = np.all(pixels[:, :, :3] == 0, axis=2) & (pixels[:, :, 3] > 0)
    pixels[~is_line] = TRANSPARENT
    return RasterBuffer(pixels)


def _validate_threshold(threshold: float) -> None:
    try:
        value = float(threshold)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Threshold must be a number, got {threshold!r}") from e
    if not math.isfinite(value) or value < 0:
        raise InvalidInputError(f"Threshold must be a finite value >= 0, got {threshold}")
