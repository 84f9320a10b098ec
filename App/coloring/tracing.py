"""Vector tracing behind a narrow `Tracer` capability.

AIDEV-NOTE: The pipeline only depends on the Tracer protocol, so tests and
callers can plug in any object with a `trace(buffer) -> VectorData` method.
VTracer is the production implementation. Tracing is a single synchronous
request; queueing or rejecting concurrent requests is the caller's job.
"""

from typing import Protocol

from errors import InvalidInputError, TraceError
from models import ColoringConfig, RasterBuffer, VectorData

from .svg_parser import colored_paths_to_svg, extract_paths, keep_dark_paths
from .utils import buffer_from_image, encode_buffer, flatten_onto

try:
    import vtracer
except ImportError:
    vtracer = None  # type: ignore[assignment]


class Tracer(Protocol):
    """Turns a raster into vector outlines or raises TraceError."""

    def trace(self, buffer: RasterBuffer) -> VectorData:
        ...


class VTracer:
    """Traces rasters to SVG with vtracer.

    AIDEV-NOTE: Defaults mirror a two-color line-art trace (binary colormode,
    speckles under 8 px dropped). The raw SVG is normalised so the result is
    a transparent overlay holding only the dark strokes.
    """

    def __init__(self, config: ColoringConfig | None = None):
        self.config = config or ColoringConfig()

    def trace(self, buffer: RasterBuffer) -> VectorData:
        """Trace a buffer into normalised vector data.

        Args:
            buffer: Image to trace (line art or photo)

        Returns:
            VectorData on a 0 0 width height canvas

        Raises:
            InvalidInputError: If the buffer is empty
            TraceError: If vtracer is missing or fails
        """
        if buffer.is_empty:
            raise InvalidInputError(
                f"Cannot trace an empty image ({buffer.width}x{buffer.height})"
            )
        raw_svg = self.trace_raw(buffer)
        return normalize_trace(raw_svg, buffer.width, buffer.height)

    def trace_raw(self, buffer: RasterBuffer) -> str:
        """Run vtracer and return its SVG output unchanged."""
        if vtracer is None:
            raise TraceError("vtracer is not installed. Run: pip install vtracer")

        # AIDEV-NOTE: Flatten onto white so transparent areas trace as background
        png_bytes = encode_buffer_for_trace(buffer)
        try:
            return vtracer.convert_raw_image_to_svg(
                png_bytes,
                img_format="png",
                colormode=self.config.trace_colormode,
                hierarchical="stacked",
                mode=self.config.trace_mode,
                filter_speckle=self.config.trace_filter_speckle,
                color_precision=self.config.trace_color_precision,
                corner_threshold=self.config.trace_corner_threshold,
                length_threshold=self.config.trace_length_threshold,
            )
        except Exception as e:
            raise TraceError(f"Vector tracing failed: {e}") from e


def encode_buffer_for_trace(buffer: RasterBuffer) -> bytes:
    """PNG bytes of the buffer flattened onto white."""
    return encode_buffer(buffer_from_image(flatten_onto(buffer)), "PNG")


def normalize_trace(raw_svg: str, width: int, height: int) -> VectorData:
    """Keep only dark fills from a traced SVG and pin its canvas size.

    Raises:
        TraceError: If the tracer output cannot be parsed
    """
    try:
        paths = extract_paths(raw_svg)
    except InvalidInputError as e:
        raise TraceError(f"Tracer returned unreadable SVG: {e}") from e

    strokes = keep_dark_paths(paths)
    return VectorData(
        svg=colored_paths_to_svg(strokes, width, height),
        width=width,
        height=height,
    )
