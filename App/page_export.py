"""Write laid-out pages to print-ready documents.

AIDEV-NOTE: Sinks only consume PageLayouts (placements plus the shared
resized artwork) and never compute geometry themselves. The artwork is
encoded once per page layout and drawn at every placement rectangle.
"""

import io
from pathlib import Path
from typing import BinaryIO, Protocol, Sequence

from PIL import Image
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from coloring.utils import buffer_to_image, encode_buffer, flatten_onto
from errors import ExportError, InvalidInputError
from models import PageLayout, RasterBuffer


class PageSink(Protocol):
    """Persists one or more laid-out pages."""

    def write(self, layouts: Sequence[PageLayout], output: "str | Path") -> "list[Path]":
        ...


def validate_layout(layout: PageLayout) -> "tuple[bool, list[str]]":
    """Check every placement lies inside its cell and the printable area.

    Args:
        layout: Page layout to check

    Returns:
        Tuple of (all_valid, error_messages)

    AIDEV-NOTE: Final safety check before anything is written. A placement
    outside the margins would be clipped by most printers.
    """
    geometry = layout.geometry
    eps = 1e-6
    errors = []

    for i, placement in enumerate(layout.placements):
        cell_x = geometry.margin_mm + placement.col * layout.cell_width_mm
        cell_y = geometry.margin_mm + placement.row * layout.cell_height_mm

        if placement.x_mm < cell_x - eps or (
            placement.x_mm + placement.width_mm > cell_x + layout.cell_width_mm + eps
        ):
            errors.append(
                f"Placement {i}: X={placement.x_mm:.2f}..{placement.x_mm + placement.width_mm:.2f} mm "
                f"outside cell ({cell_x:.2f} to {cell_x + layout.cell_width_mm:.2f})"
            )

        if placement.y_mm < cell_y - eps or (
            placement.y_mm + placement.height_mm > cell_y + layout.cell_height_mm + eps
        ):
            errors.append(
                f"Placement {i}: Y={placement.y_mm:.2f}..{placement.y_mm + placement.height_mm:.2f} mm "
                f"outside cell ({cell_y:.2f} to {cell_y + layout.cell_height_mm:.2f})"
            )

        if placement.width_px <= 0 or placement.height_px <= 0:
            errors.append(f"Placement {i}: empty image ({placement.width_px}x{placement.height_px})")

    return len(errors) == 0, errors


class PdfPageSink:
    """Writes one PDF page per layout with reportlab."""

    def __init__(self, image_format: str = "JPEG", jpeg_quality: int = 95):
        image_format = image_format.upper()
        if image_format not in ("JPEG", "PNG"):
            raise InvalidInputError(f"Unsupported page image format: {image_format}")
        self.image_format = image_format
        self.jpeg_quality = jpeg_quality

    def write(
        self, layouts: Sequence[PageLayout], output: "str | Path | BinaryIO"
    ) -> "list[Path]":
        """Write all layouts into a single multi-page PDF.

        Args:
            layouts: Pages in order
            output: Destination path or writable binary file object

        Returns:
            List holding the written path (empty for file objects)

        Raises:
            ExportError: If a layout is invalid or the PDF cannot be written
        """
        _check_layouts(layouts)

        try:
            first = layouts[0].geometry
            target = str(output) if isinstance(output, (str, Path)) else output
            pdf = canvas.Canvas(
                target, pagesize=(first.page_width_mm * mm, first.page_height_mm * mm)
            )

            for layout in layouts:
                geometry = layout.geometry
                page_height = geometry.page_height_mm
                pdf.setPageSize((geometry.page_width_mm * mm, page_height * mm))

                image = ImageReader(
                    io.BytesIO(encode_buffer(layout.artwork, self.image_format, self.jpeg_quality))
                )
                for placement in layout.placements:
                    # AIDEV-NOTE: PDF origin is bottom-left, layout origin is top-left
                    pdf.drawImage(
                        image,
                        placement.x_mm * mm,
                        (page_height - placement.y_mm - placement.height_mm) * mm,
                        width=placement.width_mm * mm,
                        height=placement.height_mm * mm,
                        mask="auto",
                    )
                pdf.showPage()

            pdf.save()
        except Exception as e:
            raise ExportError(f"Failed to write PDF: {e}") from e

        return [Path(output)] if isinstance(output, (str, Path)) else []


class PngPageSink:
    """Rasterizes each layout to a white page image at the layout's DPI."""

    def render_page(self, layout: PageLayout) -> Image.Image:
        """Render one page as an RGB image."""
        geometry = layout.geometry
        ppm = geometry.pixels_per_mm
        page = Image.new(
            "RGB",
            (round(geometry.page_width_mm * ppm), round(geometry.page_height_mm * ppm)),
            (255, 255, 255),
        )

        artwork = flatten_onto(layout.artwork)
        resized_cache: dict[tuple[int, int], Image.Image] = {}
        for placement in layout.placements:
            size = (placement.width_px, placement.height_px)
            if size not in resized_cache:
                resized_cache[size] = (
                    artwork if artwork.size == size else artwork.resize(size, Image.Resampling.LANCZOS)
                )
            page.paste(
                resized_cache[size],
                (round(placement.x_mm * ppm), round(placement.y_mm * ppm)),
            )
        return page

    def write(self, layouts: Sequence[PageLayout], output: "str | Path") -> "list[Path]":
        """Write one PNG per page.

        A single page is written to `output` as given; multiple pages get a
        `-1`, `-2`, ... suffix before the extension.

        Raises:
            ExportError: If a layout is invalid or a file cannot be written
        """
        _check_layouts(layouts)

        output = Path(output)
        if len(layouts) == 1:
            targets = [output]
        else:
            targets = [
                output.with_name(f"{output.stem}-{i}{output.suffix or '.png'}")
                for i in range(1, len(layouts) + 1)
            ]

        written = []
        for layout, target in zip(layouts, targets):
            try:
                dpi = layout.geometry.dpi
                self.render_page(layout).save(target, format="PNG", dpi=(dpi, dpi))
            except Exception as e:
                raise ExportError(f"Failed to write page image {target}: {e}") from e
            written.append(target)
        return written


def save_artwork_png(buffer: RasterBuffer, output: "str | Path") -> Path:
    """Save the flattened artwork itself (not a page) as a PNG file."""
    output = Path(output)
    try:
        buffer_to_image(buffer).save(output, format="PNG")
    except Exception as e:
        raise ExportError(f"Failed to write {output}: {e}") from e
    return output


def _check_layouts(layouts: Sequence[PageLayout]) -> None:
    if not layouts:
        raise ExportError("Nothing to export: no page layouts given")
    for page, layout in enumerate(layouts, start=1):
        valid, errors = validate_layout(layout)
        if not valid:
            raise ExportError(f"Page {page} layout is invalid: " + "; ".join(errors))
