"""
Tests for vector tracing.

Tests cover:
- vtracer invocation and option pass-through
- Normalisation of traced SVG to dark strokes
- Missing or failing tracer
"""

import io

import pytest
from PIL import Image

import coloring.tracing as tracing
from coloring.svg_parser import extract_paths
from coloring.tracing import VTracer, encode_buffer_for_trace, normalize_trace
from errors import InvalidInputError, TraceError
from models import TRANSPARENT, ColoringConfig

from conftest import RING_SVG, solid_buffer


class FakeVtracer:
    """Records calls and returns a canned SVG document."""

    def __init__(self, result=RING_SVG, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def convert_raw_image_to_svg(self, data, **kwargs):
        self.calls.append((data, kwargs))
        if self.error is not None:
            raise self.error
        return self.result


class TestVTracer:
    """Test the vtracer-backed tracer."""

    def test_trace_keeps_dark_paths(self, monkeypatch, square_photo):
        """The white background fill is removed from the traced result."""
        fake = FakeVtracer()
        monkeypatch.setattr(tracing, "vtracer", fake)

        vector = VTracer().trace(square_photo)

        assert (vector.width, vector.height) == square_photo.size
        colors = {p.color for p in extract_paths(vector.svg)}
        assert colors == {(0, 0, 0)}

    def test_options_passed_through(self, monkeypatch, square_photo):
        """Config settings reach vtracer."""
        fake = FakeVtracer()
        monkeypatch.setattr(tracing, "vtracer", fake)
        config = ColoringConfig(trace_colormode="color", trace_filter_speckle=2, trace_mode="polygon")

        VTracer(config).trace(square_photo)

        data, kwargs = fake.calls[0]
        assert data[:8] == b"\x89PNG\r\n\x1a\n"
        assert kwargs["img_format"] == "png"
        assert kwargs["colormode"] == "color"
        assert kwargs["filter_speckle"] == 2
        assert kwargs["mode"] == "polygon"

    def test_missing_vtracer(self, monkeypatch, square_photo):
        """Without vtracer installed, tracing reports a TraceError."""
        monkeypatch.setattr(tracing, "vtracer", None)

        with pytest.raises(TraceError):
            VTracer().trace(square_photo)

    def test_tracer_failure_wrapped(self, monkeypatch, square_photo):
        """Errors inside vtracer surface as TraceError."""
        monkeypatch.setattr(tracing, "vtracer", FakeVtracer(error=RuntimeError("boom")))

        with pytest.raises(TraceError, match="boom"):
            VTracer().trace(square_photo)

    def test_unreadable_output(self, monkeypatch, square_photo):
        """Garbage SVG from the tracer is a TraceError."""
        monkeypatch.setattr(tracing, "vtracer", FakeVtracer(result="<svg><path"))

        with pytest.raises(TraceError):
            VTracer().trace(square_photo)

    def test_empty_buffer(self, monkeypatch):
        """Empty input is rejected before tracing."""
        fake = FakeVtracer()
        monkeypatch.setattr(tracing, "vtracer", fake)

        with pytest.raises(InvalidInputError):
            VTracer().trace(solid_buffer(0, 0))
        assert fake.calls == []


class TestHelpers:
    """Test tracing helpers."""

    def test_trace_input_flattened_onto_white(self):
        """Transparent pixels are sent to the tracer as white."""
        data = encode_buffer_for_trace(solid_buffer(3, 3, TRANSPARENT))

        with Image.open(io.BytesIO(data)) as image:
            assert image.convert("RGB").getpixel((1, 1)) == (255, 255, 255)

    def test_normalize_sets_canvas(self):
        """The normalised document spans the source pixel size."""
        vector = normalize_trace(RING_SVG, 40, 30)

        assert 'viewBox="0 0 40 30"' in vector.svg
        assert (vector.width, vector.height) == (40, 30)
