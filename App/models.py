"""Data models and constants for the coloring page maker."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import numpy as np

from errors import InvalidInputError

# AIDEV-NOTE: The print target is fixed to A4 with a 10 mm margin
A4_WIDTH_MM = 210.0  # mm
A4_HEIGHT_MM = 297.0  # mm
PAGE_MARGIN_MM = 10.0  # mm from edges
MM_PER_INCH = 25.4

DEFAULT_DPI = 300
DEFAULT_EDGE_THRESHOLD = 100.0
DEFAULT_MAX_EDIT_WIDTH = 1000  # px

WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)
TRANSPARENT = (0, 0, 0, 0)

DEFAULT_PALETTE = [
    "#ff4757",
    "#ffa502",
    "#ffd32a",
    "#2ed573",
    "#1e90ff",
    "#9b59b6",
    "#000000",
    "#ffffff",
]

# Configuration file path
CONFIG_FILE = Path.home() / ".coloring_page_config.json"


class LayerMode(Enum):
    """Compositing behaviour of a layer."""

    OPAQUE_BACKGROUND = "opaque_background"  # Canvas is filled white first
    OVERLAY = "overlay"  # Standard alpha-over


class PaintMode(Enum):
    """Brush behaviour on the paint layer."""

    PAINT = "paint"
    ERASE = "erase"


# --- Buffers ---


@dataclass(frozen=True, eq=False)
class RasterBuffer:
    """RGBA pixels stored row-major as a (height, width, 4) uint8 array.

    AIDEV-NOTE: Buffers are value-like. The array is copied on construction
    and marked read-only, so every pipeline stage has to produce a new buffer.
    """

    pixels: np.ndarray

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise InvalidInputError(
                f"RasterBuffer needs a (height, width, 4) array, got shape {pixels.shape}"
            )
        if pixels.dtype != np.uint8:
            raise InvalidInputError(f"RasterBuffer samples must be uint8, got {pixels.dtype}")
        pixels = np.array(pixels, dtype=np.uint8, copy=True, order="C")
        pixels.flags.writeable = False
        object.__setattr__(self, "pixels", pixels)

    @classmethod
    def blank(
        cls, width: int, height: int, color: "tuple[int, int, int, int]" = WHITE
    ) -> "RasterBuffer":
        """Create a buffer filled with a single RGBA color."""
        if width < 0 or height < 0:
            raise InvalidInputError(f"Invalid buffer size: {width}x{height}")
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> "tuple[int, int]":
        return (self.width, self.height)

    @property
    def is_empty(self) -> bool:
        return self.width == 0 or self.height == 0

    def __len__(self) -> int:
        # Number of channel samples: width * height * 4
        return int(self.pixels.size)

    def pixel(self, x: int, y: int) -> "tuple[int, int, int, int]":
        """Return the RGBA sample at (x, y).

        Raises:
            IndexError: If the coordinate lies outside the buffer
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Pixel ({x}, {y}) outside {self.width}x{self.height} buffer")
        r, g, b, a = self.pixels[y, x]
        return (int(r), int(g), int(b), int(a))

    def __eq__(self, other):
        if not isinstance(other, RasterBuffer):
            return NotImplemented
        return np.array_equal(self.pixels, other.pixels)

    def __repr__(self) -> str:
        return f"RasterBuffer(width={self.width}, height={self.height})"


@dataclass(frozen=True, eq=False)
class LuminanceField:
    """One float luma value per pixel, shape (height, width)."""

    values: np.ndarray

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64, copy=True)
        if values.ndim != 2:
            raise InvalidInputError(f"LuminanceField needs a 2D array, got shape {values.shape}")
        values.flags.writeable = False
        object.__setattr__(self, "values", values)

    @property
    def width(self) -> int:
        return int(self.values.shape[1])

    @property
    def height(self) -> int:
        return int(self.values.shape[0])

    def __len__(self) -> int:
        return int(self.values.size)


@dataclass(frozen=True, eq=False)
class EdgeMask:
    """Boolean edge classification per pixel, shape (height, width)."""

    mask: np.ndarray

    def __post_init__(self):
        mask = np.array(self.mask, dtype=bool, copy=True)
        if mask.ndim != 2:
            raise InvalidInputError(f"EdgeMask needs a 2D array, got shape {mask.shape}")
        mask.flags.writeable = False
        object.__setattr__(self, "mask", mask)

    @property
    def width(self) -> int:
        return int(self.mask.shape[1])

    @property
    def height(self) -> int:
        return int(self.mask.shape[0])

    @property
    def edge_count(self) -> int:
        return int(np.count_nonzero(self.mask))


@dataclass(frozen=True)
class VectorData:
    """Traced vector artwork.

    AIDEV-NOTE: `svg` is a complete SVG document whose viewBox spans
    0 0 width height in source pixel coordinates.
    """

    svg: str
    width: int
    height: int


@dataclass
class ColoredPath:
    """A filled outline extracted from traced SVG.

    AIDEV-NOTE: Points are in source pixel coordinates. Color is RGB (0-255).
    Rings sharing a group came from the same compound path and are filled
    even-odd together.
    """

    points: "list[tuple[float, float]]"
    color: "tuple[int, int, int]"
    is_closed: bool = False
    group: int = 0


@dataclass(frozen=True)
class Layer:
    """One raster or vector source plus its compositing mode."""

    source: "RasterBuffer | VectorData"
    mode: LayerMode = LayerMode.OVERLAY

    @property
    def is_vector(self) -> bool:
        return isinstance(self.source, VectorData)

    @property
    def width(self) -> int:
        return self.source.width

    @property
    def height(self) -> int:
        return self.source.height


@dataclass(frozen=True)
class Stroke:
    """A freehand brush stroke in paint-layer pixel coordinates."""

    points: "list[tuple[float, float]]"
    color: str = "#ff4757"
    brush_size: int = 14
    mode: PaintMode = PaintMode.PAINT


# --- Page layout models ---


@dataclass(frozen=True)
class PageGeometry:
    """Physical page description used for layout and export."""

    page_width_mm: float = A4_WIDTH_MM
    page_height_mm: float = A4_HEIGHT_MM
    margin_mm: float = PAGE_MARGIN_MM
    dpi: int = DEFAULT_DPI
    copies_per_page: int = 1

    @property
    def printable_width_mm(self) -> float:
        return self.page_width_mm - 2 * self.margin_mm

    @property
    def printable_height_mm(self) -> float:
        return self.page_height_mm - 2 * self.margin_mm

    @property
    def pixels_per_mm(self) -> float:
        return self.dpi / MM_PER_INCH


@dataclass(frozen=True)
class PlacementRecord:
    """Where one scaled copy of the artwork lands on the page.

    AIDEV-NOTE: x_mm/y_mm are absolute page-space coordinates of the image's
    top-left corner (margin + cell origin + centering offset).
    """

    row: int
    col: int
    x_mm: float
    y_mm: float
    width_px: int
    height_px: int
    width_mm: float
    height_mm: float
    offset_x_px: float  # Centering offset inside the cell
    offset_y_px: float
    image: RasterBuffer = field(repr=False, compare=False)


@dataclass(frozen=True)
class PageLayout:
    """Result of laying out one page: the shared artwork plus placements."""

    geometry: PageGeometry
    artwork: RasterBuffer  # Resized once, shared by all placements
    placements: "list[PlacementRecord]"
    columns: int
    rows: int
    cell_width_mm: float
    cell_height_mm: float
    scale: float  # Global source -> printable-area scale


# --- Configuration ---


@dataclass
class ColoringConfig:
    """User configuration for conversion, tracing, painting and printing."""

    # Line art
    edge_threshold: float = DEFAULT_EDGE_THRESHOLD  # Gradient magnitude cutoff
    max_edit_width: int = DEFAULT_MAX_EDIT_WIDTH  # Wider sources are downscaled

    # VTracer settings
    trace_colormode: str = "binary"  # "binary" or "color"
    trace_filter_speckle: int = 8  # Discard patches smaller than X px
    trace_color_precision: int = 6  # Color precision (1-8)
    trace_mode: str = "spline"  # "spline", "polygon" or "none"
    trace_corner_threshold: int = 60  # Degrees
    trace_length_threshold: float = 4.0  # Minimum segment length

    # Print settings
    dpi: int = DEFAULT_DPI
    copies_per_page: int = 1
    page_image_format: str = "JPEG"  # Embedded image format ("JPEG" or "PNG")
    jpeg_quality: int = 95

    # Painting
    brush_size: int = 14  # px
    paint_color: str = "#ff4757"
    palette: "list[str]" = field(default_factory=lambda: list(DEFAULT_PALETTE))

    def page_geometry(self, copies_per_page: int | None = None) -> PageGeometry:
        """Build the fixed A4 geometry at this config's resolution."""
        return PageGeometry(
            dpi=self.dpi,
            copies_per_page=(
                self.copies_per_page if copies_per_page is None else copies_per_page
            ),
        )


@dataclass
class ColoringPage:
    """Result of the end-to-end coloring page pipeline."""

    # Source dimensions as loaded (pixels)
    original_width: int
    original_height: int

    # Working dimensions after fitting to the editing width
    width: int
    height: int

    line_art: RasterBuffer
    artwork: RasterBuffer
    layouts: "list[PageLayout]"

    # Statistics
    edge_count: int = 0
    traced: bool = False
    output_path: Path | None = None
