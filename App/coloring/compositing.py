"""Layer compositing into one flattened raster.

AIDEV-NOTE: Layers are drawn bottom to top with standard alpha-over. If any
layer is tagged OPAQUE_BACKGROUND the canvas is filled white before the
first layer is drawn, so no transparent pixel can leak into an export.
Vector layers are rasterized by a pluggable collaborator first.
"""

from typing import Protocol, Sequence

import numpy as np

from errors import DimensionMismatchError, InvalidInputError, InvalidLayerError
from models import TRANSPARENT, WHITE, Layer, LayerMode, RasterBuffer, VectorData

from .svg_parser import SvgRasterizer


class VectorRasterizer(Protocol):
    """Anything able to turn vector data into a buffer of a given size."""

    def rasterize(self, vector: VectorData, width: int, height: int) -> RasterBuffer:
        ...


def alpha_over(destination: np.ndarray, source: np.ndarray) -> np.ndarray:
    """Porter-Duff "source over destination" for uint8 RGBA arrays.

    Args:
        destination: Existing canvas pixels (height, width, 4)
        source: Pixels drawn on top, same shape

    Returns:
        New uint8 array with the composited result
    """
    src = source.astype(np.float64) / 255.0
    dst = destination.astype(np.float64) / 255.0

    src_a = src[:, :, 3:4]
    dst_a = dst[:, :, 3:4]
    out_a = src_a + dst_a * (1.0 - src_a)

    premultiplied = src[:, :, :3] * src_a + dst[:, :, :3] * dst_a * (1.0 - src_a)
    out_rgb = np.divide(
        premultiplied, out_a, out=np.zeros_like(premultiplied), where=out_a > 0
    )

    out = np.concatenate([out_rgb, out_a], axis=2)
    return np.clip(np.rint(out * 255.0), 0, 255).astype(np.uint8)


def composite_layers(
    layers: Sequence[Layer],
    width: int | None = None,
    height: int | None = None,
    rasterizer: VectorRasterizer | None = None,
) -> RasterBuffer:
    """Merge an ordered stack of layers (bottom first) into one buffer.

    Args:
        layers: Layers to draw, bottom-most first
        width: Canvas width, defaults to the first layer's width
        height: Canvas height, defaults to the first layer's height
        rasterizer: Collaborator for vector layers; defaults to SvgRasterizer

    Returns:
        Flattened RasterBuffer of the canvas size

    Raises:
        InvalidInputError: If no layers are given
        InvalidLayerError: If any layer has zero width or height
        DimensionMismatchError: If a layer (or rasterized vector) differs
            from the canvas size
    """
    if not layers:
        raise InvalidInputError("At least one layer is required")

    for index, layer in enumerate(layers):
        if layer.width <= 0 or layer.height <= 0:
            raise InvalidLayerError(
                f"Layer {index} has zero area ({layer.width}x{layer.height})"
            )

    canvas_width = layers[0].width if width is None else width
    canvas_height = layers[0].height if height is None else height
    if canvas_width <= 0 or canvas_height <= 0:
        raise InvalidInputError(f"Invalid canvas size: {canvas_width}x{canvas_height}")

    for index, layer in enumerate(layers):
        if (layer.width, layer.height) != (canvas_width, canvas_height):
            raise DimensionMismatchError(
                f"Layer {index} is {layer.width}x{layer.height}, "
                f"canvas is {canvas_width}x{canvas_height}"
            )

    canvas = np.empty((canvas_height, canvas_width, 4), dtype=np.uint8)
    if any(layer.mode is LayerMode.OPAQUE_BACKGROUND for layer in layers):
        canvas[:, :] = WHITE
    else:
        canvas[:, :] = TRANSPARENT

    for index, layer in enumerate(layers):
        buffer = _layer_pixels(layer, canvas_width, canvas_height, rasterizer)
        if buffer.size != (canvas_width, canvas_height):
            raise DimensionMismatchError(
                f"Rasterized layer {index} is {buffer.width}x{buffer.height}, "
                f"canvas is {canvas_width}x{canvas_height}"
            )
        canvas = alpha_over(canvas, buffer.pixels)

    return RasterBuffer(canvas)


def _layer_pixels(
    layer: Layer,
    width: int,
    height: int,
    rasterizer: VectorRasterizer | None,
) -> RasterBuffer:
    if not layer.is_vector:
        return layer.source  # type: ignore[return-value]

    if rasterizer is None:
        rasterizer = SvgRasterizer()
    return rasterizer.rasterize(layer.source, width, height)  # type: ignore[arg-type]
