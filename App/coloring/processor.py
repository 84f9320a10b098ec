"""Main coloring page processor orchestrating the complete pipeline.

AIDEV-NOTE: This module handles the complete pipeline from photograph to
print-ready page. Every step returns a new buffer; the processor itself
keeps only configuration and collaborators, never "current artwork" state.
"""

from pathlib import Path

from PIL import Image, UnidentifiedImageError

from errors import InvalidInputError
from models import (
    ColoringConfig,
    ColoringPage,
    Layer,
    LayerMode,
    PageLayout,
    PaintMode,
    RasterBuffer,
    Stroke,
    VectorData,
)

from .compositing import VectorRasterizer, composite_layers
from .edges import (
    convert_to_line_art,
    detect_edges,
    line_art_to_overlay,
    render_line_art,
    to_luminance,
)
from .layout import layout_pages
from .painting import apply_strokes, new_paint_layer
from .quantization import suggest_palette
from .tracing import Tracer, VTracer
from .utils import buffer_from_image, fit_to_width


class ColoringPageProcessor:
    """Turns photographs into printable coloring pages."""

    def __init__(
        self,
        config: ColoringConfig | None = None,
        tracer: Tracer | None = None,
        rasterizer: VectorRasterizer | None = None,
        page_sink=None,
    ):
        self.config = config or ColoringConfig()
        self.tracer = tracer or VTracer(self.config)
        self.rasterizer = rasterizer
        self.page_sink = page_sink

    def load_image(self, file_path: str | Path, fit: bool = True) -> RasterBuffer:
        """Load and validate an image file.

        Args:
            file_path: Path to image file (PNG, JPG, etc.)
            fit: Downscale to the configured editing width

        Returns:
            RasterBuffer in RGBA

        Raises:
            InvalidInputError: If file cannot be loaded or is empty
        """
        try:
            with Image.open(file_path) as image:
                # AIDEV-NOTE: Always convert to RGBA for consistent processing
                buffer = buffer_from_image(image.convert("RGBA"))
        except (OSError, UnidentifiedImageError) as e:
            raise InvalidInputError(f"Failed to load image: {e}") from e

        if buffer.is_empty:
            raise InvalidInputError(f"Image has zero size: {file_path}")
        if fit:
            buffer = fit_to_width(buffer, self.config.max_edit_width)
        return buffer

    def convert_to_line_art(
        self,
        source: RasterBuffer,
        threshold: float | None = None,
        transparent_background: bool = False,
    ) -> RasterBuffer:
        """Detect edges and render them black on white (or transparent)."""
        threshold = self.config.edge_threshold if threshold is None else threshold
        return convert_to_line_art(
            source, threshold, transparent_background=transparent_background
        )

    def trace(self, source: RasterBuffer) -> VectorData:
        """Vectorize a buffer with the configured tracer."""
        return self.tracer.trace(source)

    def paint(
        self,
        paint_layer: RasterBuffer | None,
        strokes: "list[Stroke]",
        size: "tuple[int, int] | None" = None,
    ) -> RasterBuffer:
        """Apply strokes to a paint layer, creating a blank one when needed."""
        if paint_layer is None:
            if size is None:
                raise InvalidInputError("A size is required to create a new paint layer")
            paint_layer = new_paint_layer(*size)
        return apply_strokes(paint_layer, strokes)

    def new_stroke(
        self,
        points: "list[tuple[float, float]]",
        mode: PaintMode = PaintMode.PAINT,
        color: str | None = None,
        brush_size: int | None = None,
    ) -> Stroke:
        """Stroke with the configured brush color and size unless overridden."""
        return Stroke(
            points=list(points),
            color=self.config.paint_color if color is None else color,
            brush_size=self.config.brush_size if brush_size is None else brush_size,
            mode=mode,
        )

    def suggest_palette(self, source: RasterBuffer, num_colors: int = 8) -> "list[str]":
        """Dominant colors of the source, for seeding the paint palette."""
        return suggest_palette(source, num_colors)

    def compose(
        self,
        line_art: RasterBuffer | None = None,
        paint_layer: RasterBuffer | None = None,
        vector: VectorData | None = None,
    ) -> RasterBuffer:
        """Flatten paint and lines into one opaque artwork buffer.

        The paint layer (or a blank white one) forms the background. Traced
        vector lines are preferred over raster line-art when both are given.

        Raises:
            InvalidInputError: If neither lines nor paint are supplied
            DimensionMismatchError: If the layers disagree in size
        """
        if line_art is None and vector is None and paint_layer is None:
            raise InvalidInputError("Nothing to compose: supply line art, paint or vector data")

        reference = next(b for b in (line_art, paint_layer, vector) if b is not None)
        width, height = reference.width, reference.height
        background = paint_layer if paint_layer is not None else new_paint_layer(width, height)

        layers = [Layer(background, LayerMode.OPAQUE_BACKGROUND)]
        if vector is not None:
            layers.append(Layer(vector, LayerMode.OVERLAY))
        elif line_art is not None:
            layers.append(Layer(line_art_to_overlay(line_art), LayerMode.OVERLAY))

        return composite_layers(layers, width, height, rasterizer=self.rasterizer)

    def layout(
        self,
        artwork: RasterBuffer,
        copies_per_page: int | None = None,
        page_count: int = 1,
    ) -> "list[PageLayout]":
        """Lay out the artwork on A4 pages at the configured resolution."""
        geometry = self.config.page_geometry(copies_per_page)
        return layout_pages(artwork, geometry, page_count=page_count)

    def export(self, layouts: "list[PageLayout]", output_path: str | Path) -> "list[Path]":
        """Hand laid-out pages to the page sink."""
        sink = self.page_sink
        if sink is None:
            from page_export import PdfPageSink

            sink = PdfPageSink(self.config.page_image_format, self.config.jpeg_quality)
        return sink.write(layouts, output_path)

    def process(
        self,
        file_path: str | Path,
        output_path: str | Path,
        threshold: float | None = None,
        copies_per_page: int | None = None,
        page_count: int = 1,
        use_vector: bool = False,
        paint_layer: RasterBuffer | None = None,
    ) -> ColoringPage:
        """Execute complete coloring page pipeline.

        Args:
            file_path: Path to input photo
            output_path: Where the page sink writes the document
            threshold: Edge threshold, uses config default if None
            copies_per_page: Copies tiled on each page, config default if None
            page_count: Number of pages in the document
            use_vector: Trace the line art and print the vector outlines
            paint_layer: Optional painted colors (same size as the fitted photo)

        Returns:
            ColoringPage with the intermediate buffers and layouts
        """
        print("Starting coloring page pipeline...")

        print("Loading image...")
        source = self.load_image(file_path, fit=False)
        orig_width, orig_height = source.size
        print(f"Loaded image with size: {orig_width}x{orig_height} pixels.")

        source = fit_to_width(source, self.config.max_edit_width)
        if source.size != (orig_width, orig_height):
            print(f"Scaled image to {source.width}x{source.height} pixels for editing.")

        print("Detecting edges...")
        threshold = self.config.edge_threshold if threshold is None else threshold
        mask = detect_edges(to_luminance(source), threshold)
        line_art = render_line_art(mask)
        print(f"Edge pixels: {mask.edge_count}")

        vector = None
        if use_vector:
            print("Tracing line art to vector outlines...")
            vector = self.trace(line_art)

        print("Compositing layers...")
        artwork = self.compose(line_art=line_art, paint_layer=paint_layer, vector=vector)

        print("Laying out pages...")
        layouts = self.layout(artwork, copies_per_page, page_count)
        placements = sum(len(layout.placements) for layout in layouts)
        print(f"Placed {placements} copies on {len(layouts)} page(s).")

        written = self.export(layouts, output_path)
        print(f"Saved {', '.join(str(p) for p in written)}")

        print("Coloring page complete.")
        return ColoringPage(
            original_width=orig_width,
            original_height=orig_height,
            width=source.width,
            height=source.height,
            line_art=line_art,
            artwork=artwork,
            layouts=layouts,
            edge_count=mask.edge_count,
            traced=vector is not None,
            output_path=written[0] if written else None,
        )
