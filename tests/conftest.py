"""
Pytest configuration and shared fixtures for coloring page tests.

This module provides shared test fixtures and helpers
used across multiple test modules.
"""

import numpy as np
import pytest
from PIL import Image

from models import ColoringConfig, PageGeometry, RasterBuffer, VectorData


def solid_buffer(width, height, color=(255, 255, 255, 255)):
    """Build a RasterBuffer filled with one RGBA color."""
    return RasterBuffer.blank(width, height, color)


@pytest.fixture
def white_buffer():
    """A 20x20 opaque white image."""
    return solid_buffer(20, 20)


@pytest.fixture
def square_photo():
    """
    A 40x40 image: black square centered on white.

    Returns:
        RasterBuffer with a sharp luminance step on every side of the square
    """
    pixels = np.full((40, 40, 4), 255, dtype=np.uint8)
    pixels[10:30, 10:30, :3] = 0
    return RasterBuffer(pixels)


@pytest.fixture
def gradient_photo():
    """
    An 800x600 image with smooth color ramps plus a few hard shapes.

    Returns:
        RasterBuffer large enough to exercise the vectorized edge path
    """
    ys, xs = np.mgrid[0:600, 0:800]
    pixels = np.empty((600, 800, 4), dtype=np.uint8)
    pixels[:, :, 0] = (xs * 255 // 799).astype(np.uint8)
    pixels[:, :, 1] = (ys * 255 // 599).astype(np.uint8)
    pixels[:, :, 2] = 128
    pixels[:, :, 3] = 255
    pixels[100:200, 100:300, :3] = (20, 20, 20)
    pixels[350:500, 500:700, :3] = (240, 240, 240)
    return RasterBuffer(pixels)


@pytest.fixture
def low_dpi_geometry():
    """A4 geometry at 50 dpi keeps resized artwork small in tests."""
    return PageGeometry(dpi=50)


@pytest.fixture
def fast_config():
    """Config with a low print resolution for end-to-end tests."""
    return ColoringConfig(dpi=50)


@pytest.fixture
def photo_file(tmp_path, square_photo):
    """Write the square photo to a PNG file and return its path."""
    path = tmp_path / "photo.png"
    Image.fromarray(np.array(square_photo.pixels), mode="RGBA").save(path)
    return path


# Two concentric squares in one compound path; the inner ring is a hole.
RING_SVG = """<svg xmlns="http://www.w3.org/2000/svg" width="40" height="40" viewBox="0 0 40 40">
  <path d="M10 10 L30 10 L30 30 L10 30 Z M15 15 L25 15 L25 25 L15 25 Z" fill="#000000" fill-rule="evenodd"/>
  <path d="M0 0 L40 0 L40 5 L0 5 Z" fill="#ffffff"/>
  <path d="M0 35 L40 35 L40 40 L0 40 Z" fill="none" stroke="#000000"/>
</svg>
"""


@pytest.fixture
def ring_svg():
    """Hand-written SVG with a dark ring, a light bar and an unfilled outline."""
    return RING_SVG


class StubTracer:
    """Tracer returning a fixed vector document and counting calls."""

    def __init__(self, svg_text=RING_SVG, error=None):
        self.svg_text = svg_text
        self.error = error
        self.calls = 0

    def trace(self, buffer):
        self.calls += 1
        if self.error is not None:
            raise self.error
        return VectorData(svg=self.svg_text, width=buffer.width, height=buffer.height)


class StubRasterizer:
    """Rasterizer that paints a single black pixel at the top-left corner."""

    def __init__(self, size=None):
        self.size = size
        self.calls = []

    def rasterize(self, vector, width, height):
        self.calls.append((width, height))
        width, height = self.size or (width, height)
        pixels = np.zeros((height, width, 4), dtype=np.uint8)
        pixels[0, 0] = (0, 0, 0, 255)
        return RasterBuffer(pixels)
