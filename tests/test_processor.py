"""
Tests for the ColoringPageProcessor pipeline.

Tests cover:
- Image loading and fitting
- Line art conversion with config threshold
- Strokes from the configured brush
- Compositing paint, lines and vectors
- End-to-end processing to PDF and PNG
- Tracer failures
"""

import numpy as np
import pytest
from PIL import Image

from coloring import ColoringPageProcessor
from errors import InvalidInputError, TraceError
from models import BLACK, WHITE, ColoringConfig, PaintMode, Stroke, VectorData
from page_export import PngPageSink

from conftest import StubRasterizer, StubTracer, solid_buffer


@pytest.fixture
def processor(fast_config):
    """Processor with a stub tracer and a low print resolution."""
    return ColoringPageProcessor(fast_config, tracer=StubTracer())


class TestLoadImage:
    """Test image loading."""

    def test_load_png(self, processor, photo_file):
        """A PNG loads as an RGBA buffer of the same size."""
        buffer = processor.load_image(photo_file)

        assert buffer.size == (40, 40)
        assert buffer.pixel(20, 20) == BLACK

    def test_wide_image_fitted(self, processor, tmp_path):
        """Wide photos are downscaled to the editing width."""
        path = tmp_path / "wide.jpg"
        Image.new("RGB", (1200, 300), (10, 200, 30)).save(path)

        buffer = processor.load_image(path)

        assert buffer.size == (1000, 250)

    def test_fit_disabled(self, processor, tmp_path):
        """fit=False keeps the original size."""
        path = tmp_path / "wide.png"
        Image.new("L", (1200, 10), 128).save(path)

        assert processor.load_image(path, fit=False).size == (1200, 10)

    def test_missing_file(self, processor, tmp_path):
        """A missing file is invalid input."""
        with pytest.raises(InvalidInputError):
            processor.load_image(tmp_path / "nope.png")

    def test_not_an_image(self, processor, tmp_path):
        """Non-image data is invalid input."""
        path = tmp_path / "notes.png"
        path.write_text("hello")

        with pytest.raises(InvalidInputError):
            processor.load_image(path)


class TestPipelineSteps:
    """Test individual processor steps."""

    def test_threshold_from_config(self, square_photo):
        """A huge configured threshold suppresses every edge."""
        processor = ColoringPageProcessor(ColoringConfig(edge_threshold=10_000), tracer=StubTracer())

        art = processor.convert_to_line_art(square_photo)

        assert art == solid_buffer(40, 40, WHITE)

    def test_compose_lines_over_paint(self, processor, square_photo):
        """Paint shows through the line-art background."""
        line_art = processor.convert_to_line_art(square_photo)
        paint = processor.paint(
            None, [Stroke(points=[(3, 3)], color="#00ff00", brush_size=4)], size=(40, 40)
        )

        artwork = processor.compose(line_art=line_art, paint_layer=paint)

        assert artwork.pixel(3, 3) == (0, 255, 0, 255)
        assert artwork.pixel(10, 20) == BLACK
        assert artwork.pixel(35, 35) == WHITE

    def test_compose_erased_paint_is_white(self, processor, square_photo):
        """Erased paint composites as white, never transparent."""
        paint = processor.paint(
            None, [Stroke(points=[(3, 3)], brush_size=4, mode=PaintMode.ERASE)],
            size=(40, 40),
        )

        artwork = processor.compose(line_art=processor.convert_to_line_art(square_photo), paint_layer=paint)

        assert artwork.pixel(3, 3) == WHITE

    def test_compose_prefers_vector(self, fast_config, square_photo):
        """Vector lines replace raster lines when both are supplied."""
        rasterizer = StubRasterizer()
        processor = ColoringPageProcessor(fast_config, tracer=StubTracer(), rasterizer=rasterizer)

        artwork = processor.compose(
            line_art=processor.convert_to_line_art(square_photo),
            vector=VectorData(svg="<svg/>", width=40, height=40),
        )

        assert rasterizer.calls == [(40, 40)]
        assert artwork.pixel(0, 0) == BLACK
        assert artwork.pixel(10, 20) == WHITE  # raster edge not drawn

    def test_compose_nothing(self, processor):
        """Composing without inputs is an error."""
        with pytest.raises(InvalidInputError):
            processor.compose()

    def test_paint_needs_size(self, processor):
        """A new paint layer needs dimensions."""
        with pytest.raises(InvalidInputError):
            processor.paint(None, [])

    def test_new_stroke_uses_config_brush(self):
        """Strokes default to the configured brush color and size."""
        processor = ColoringPageProcessor(
            ColoringConfig(dpi=50, brush_size=4, paint_color="#00ff00"), tracer=StubTracer()
        )

        stroke = processor.new_stroke([(3, 3)])
        paint = processor.paint(None, [stroke], size=(10, 10))

        assert (stroke.color, stroke.brush_size, stroke.mode) == ("#00ff00", 4, PaintMode.PAINT)
        assert paint.pixel(3, 3) == (0, 255, 0, 255)
        assert paint.pixel(8, 8) == WHITE

    def test_new_stroke_overrides(self, processor):
        """Explicit color and size win over the configuration."""
        stroke = processor.new_stroke([(1, 1)], mode=PaintMode.ERASE, color="navy", brush_size=2)

        assert (stroke.color, stroke.brush_size, stroke.mode) == ("navy", 2, PaintMode.ERASE)

    def test_suggest_palette(self, processor, square_photo):
        """Palette comes from the photo colors."""
        assert set(processor.suggest_palette(square_photo, 2)) == {"#000000", "#ffffff"}


class TestProcess:
    """Test the end-to-end pipeline."""

    def test_pdf(self, processor, photo_file, tmp_path, capsys):
        """The photo becomes a one-page PDF."""
        target = tmp_path / "out.pdf"

        result = processor.process(photo_file, target)

        assert target.read_bytes().startswith(b"%PDF")
        assert result.output_path == target
        assert (result.width, result.height) == (40, 40)
        assert result.edge_count > 0
        assert len(result.layouts) == 1
        assert not result.traced
        assert "Coloring page complete." in capsys.readouterr().out

    def test_copies_and_pages(self, processor, photo_file, tmp_path):
        """Copies and page count flow into the layouts."""
        result = processor.process(photo_file, tmp_path / "out.pdf", copies_per_page=4, page_count=2)

        assert len(result.layouts) == 2
        assert all(len(layout.placements) == 4 for layout in result.layouts)

    def test_vector(self, fast_config, photo_file, tmp_path):
        """Tracing is used when requested."""
        tracer = StubTracer()
        processor = ColoringPageProcessor(fast_config, tracer=tracer, rasterizer=StubRasterizer())

        result = processor.process(photo_file, tmp_path / "out.pdf", use_vector=True)

        assert tracer.calls == 1
        assert result.traced

    def test_png_sink(self, fast_config, photo_file, tmp_path):
        """A PNG sink writes page images instead of a PDF."""
        processor = ColoringPageProcessor(fast_config, tracer=StubTracer(), page_sink=PngPageSink())

        result = processor.process(photo_file, tmp_path / "page.png")

        with Image.open(result.output_path) as image:
            assert image.size == (413, 585)

    def test_paint_layer(self, processor, photo_file, tmp_path):
        """A supplied paint layer colors the artwork."""
        paint = solid_buffer(40, 40, (0, 0, 255, 255))

        result = processor.process(photo_file, tmp_path / "out.pdf", paint_layer=paint)

        assert result.artwork.pixel(2, 2) == (0, 0, 255, 255)
        assert result.artwork.pixel(10, 20) == BLACK

    def test_trace_failure(self, fast_config, photo_file, tmp_path):
        """Tracer errors abort the pipeline."""
        processor = ColoringPageProcessor(fast_config, tracer=StubTracer(error=TraceError("no")))
        target = tmp_path / "out.pdf"

        with pytest.raises(TraceError):
            processor.process(photo_file, target, use_vector=True)
        assert not target.exists()

    def test_line_art_unchanged_by_paint(self, processor, photo_file, tmp_path):
        """The returned line art is plain black on white."""
        paint = solid_buffer(40, 40, (0, 0, 255, 255))

        result = processor.process(photo_file, tmp_path / "out.pdf", paint_layer=paint)

        colors = {tuple(int(v) for v in c) for c in np.unique(result.line_art.pixels.reshape(-1, 4), axis=0)}
        assert colors <= {BLACK, WHITE}
