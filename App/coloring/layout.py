"""Page layout: tile scaled copies of the artwork onto a fixed page grid.

AIDEV-NOTE: The artwork is resized once to fit the printable area at the
page's resolution (scale-once, place-many). Copies are then fitted into a
uniform grid of equal cells, each centered with aspect ratio preserved.
Cell pixel sizes are floored so a placed image can never spill out of its
cell.
"""

import math
import numbers

from errors import InvalidArtworkError, InvalidCopyCountError, InvalidInputError
from models import PageGeometry, PageLayout, PlacementRecord, RasterBuffer

from .utils import resize_buffer


def grid_shape(copies: int) -> "tuple[int, int]":
    """Return (columns, rows) for tiling `copies` instances.

    AIDEV-NOTE: Fixed heuristic, not optimal packing: one column for one or
    two copies (two copies stack vertically), otherwise ceil(sqrt(copies))
    columns.
    """
    _validate_copies(copies)
    columns = 1 if copies <= 2 else math.ceil(math.sqrt(copies))
    rows = math.ceil(copies / columns)
    return columns, rows


def fit_and_center(
    image_width: int,
    image_height: int,
    cell_width: float,
    cell_height: float,
) -> "tuple[int, int, float, float]":
    """Fit an image into a cell keeping its aspect ratio.

    Args:
        image_width: Image width in pixels
        image_height: Image height in pixels
        cell_width: Cell width in pixels (may be fractional)
        cell_height: Cell height in pixels (may be fractional)

    Returns:
        Tuple of (placed_width, placed_height, offset_x, offset_y) where the
        offsets center the placed image inside the cell
    """
    if image_width <= 0 or image_height <= 0:
        raise InvalidArtworkError(f"Artwork has zero area ({image_width}x{image_height})")
    if cell_width < 1 or cell_height < 1:
        raise InvalidInputError(f"Cell too small to hold an image ({cell_width}x{cell_height} px)")

    scale = min(cell_width / image_width, cell_height / image_height)
    placed_width = min(max(1, round(image_width * scale)), math.floor(cell_width))
    placed_height = min(max(1, round(image_height * scale)), math.floor(cell_height))

    offset_x = (cell_width - placed_width) / 2
    offset_y = (cell_height - placed_height) / 2
    return placed_width, placed_height, offset_x, offset_y


def scale_to_printable(
    artwork: RasterBuffer, geometry: PageGeometry
) -> "tuple[RasterBuffer, float]":
    """Resize artwork to fill the printable area at the page resolution.

    Returns:
        Tuple of (resized buffer, scale factor)
    """
    if artwork.is_empty:
        raise InvalidArtworkError(f"Artwork has zero area ({artwork.width}x{artwork.height})")
    _validate_geometry(geometry)

    ppm = geometry.pixels_per_mm
    target_width = round(geometry.printable_width_mm * ppm)
    target_height = round(geometry.printable_height_mm * ppm)

    scale = min(target_width / artwork.width, target_height / artwork.height)
    resized_width = max(1, round(artwork.width * scale))
    resized_height = max(1, round(artwork.height * scale))
    return resize_buffer(artwork, resized_width, resized_height), scale


def layout_page(
    artwork: RasterBuffer,
    geometry: PageGeometry,
    copies_per_page: int | None = None,
) -> PageLayout:
    """Compute placements for one page.

    Args:
        artwork: Flattened artwork to print
        geometry: Page size, margin and resolution
        copies_per_page: Copies to tile; defaults to geometry.copies_per_page

    Returns:
        PageLayout with one PlacementRecord per copy, in row-major order

    Raises:
        InvalidCopyCountError: If copies_per_page < 1
        InvalidArtworkError: If the artwork has zero area
        InvalidInputError: For an impossible page geometry
    """
    copies = geometry.copies_per_page if copies_per_page is None else copies_per_page
    _validate_copies(copies)
    resized, scale = scale_to_printable(artwork, geometry)
    return place_copies(resized, geometry, copies, scale)


def layout_pages(
    artwork: RasterBuffer,
    geometry: PageGeometry,
    copies_per_page: int | None = None,
    page_count: int = 1,
) -> "list[PageLayout]":
    """Lay out `page_count` identical pages sharing one resized artwork."""
    if page_count < 1:
        raise InvalidInputError(f"page_count must be at least 1, got {page_count}")
    layout = layout_page(artwork, geometry, copies_per_page)
    return [layout] * page_count


def place_copies(
    resized: RasterBuffer,
    geometry: PageGeometry,
    copies: int,
    scale: float = 1.0,
) -> PageLayout:
    """Place `copies` instances of an already-resized artwork on the grid."""
    _validate_copies(copies)
    _validate_geometry(geometry)

    ppm = geometry.pixels_per_mm
    columns, rows = grid_shape(copies)
    cell_width_mm = geometry.printable_width_mm / columns
    cell_height_mm = geometry.printable_height_mm / rows

    placements: list[PlacementRecord] = []
    for row in range(rows):
        for col in range(columns):
            if len(placements) >= copies:
                break

            width_px, height_px, offset_x, offset_y = fit_and_center(
                resized.width,
                resized.height,
                cell_width_mm * ppm,
                cell_height_mm * ppm,
            )
            placements.append(
                PlacementRecord(
                    row=row,
                    col=col,
                    x_mm=geometry.margin_mm + col * cell_width_mm + offset_x / ppm,
                    y_mm=geometry.margin_mm + row * cell_height_mm + offset_y / ppm,
                    width_px=width_px,
                    height_px=height_px,
                    width_mm=width_px / ppm,
                    height_mm=height_px / ppm,
                    offset_x_px=offset_x,
                    offset_y_px=offset_y,
                    image=resized,
                )
            )

    return PageLayout(
        geometry=geometry,
        artwork=resized,
        placements=placements,
        columns=columns,
        rows=rows,
        cell_width_mm=cell_width_mm,
        cell_height_mm=cell_height_mm,
        scale=scale,
    )


def _validate_copies(copies) -> None:
    if isinstance(copies, bool) or not isinstance(copies, numbers.Integral) or copies < 1:
        raise InvalidCopyCountError(f"copies_per_page must be a positive integer, got {copies!r}")


def _validate_geometry(geometry: PageGeometry) -> None:
    if geometry.dpi <= 0:
        raise InvalidInputError(f"Resolution must be positive, got {geometry.dpi} dpi")
    if geometry.margin_mm < 0:
        raise InvalidInputError(f"Margin must not be negative, got {geometry.margin_mm} mm")
    if geometry.printable_width_mm <= 0 or geometry.printable_height_mm <= 0:
        raise InvalidInputError(
            f"Page {geometry.page_width_mm}x{geometry.page_height_mm} mm has no printable "
            f"area with a {geometry.margin_mm} mm margin"
        )
