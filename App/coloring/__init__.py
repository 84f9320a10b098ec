"""Photo-to-coloring-page pipeline.

AIDEV-NOTE: This package handles the complete pipeline from photograph
to print-ready page. Organized into modular components:
- processor: Main ColoringPageProcessor orchestrator
- edges: Grayscale conversion and Sobel edge detection
- compositing: Layer stack flattening
- layout: Page grid layout of scaled copies
- tracing / svg_parser: Vector tracing, SVG parsing and rasterization
- painting: Paint layer strokes
- quantization: Palette suggestion
- utils: Buffer conversion, color and unit utilities
"""

from .compositing import composite_layers
from .edges import convert_to_line_art, detect_edges, render_line_art, to_luminance
from .layout import grid_shape, layout_page
from .processor import ColoringPageProcessor

__all__ = [
    "ColoringPageProcessor",
    "composite_layers",
    "convert_to_line_art",
    "detect_edges",
    "grid_shape",
    "layout_page",
    "render_line_art",
    "to_luminance",
]
