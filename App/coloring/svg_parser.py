"""SVG parsing, writing and rasterization.

AIDEV-NOTE: svgpathtools parses traced SVG into an element tree; shapes are
walked in paint order and their transforms (such as vtracer's translate())
are applied with svgpathtools. Compound paths are split into rings at
moveto discontinuities; rings from the same source shape share a `group`
and are filled even-odd so holes stay open. svg.py writes the normalised
overlay document back out.
"""

import io

import numpy as np
import svg
import svgpathtools
from PIL import Image, ImageDraw
from svgpathtools.path import transform

from errors import DimensionMismatchError, InvalidInputError
from models import ColoredPath, RasterBuffer, VectorData

from .utils import color_to_hex, parse_color, relative_luminance

# Sampling density bounds per ring
MIN_RING_SAMPLES = 10
MAX_RING_SAMPLES = 2000

# Filled shape types; <line> has no interior
SHAPE_CONVERSIONS = {
    tag: converter
    for tag, converter in svgpathtools.CONVERSIONS.items()
    if tag != "line"
}


def extract_paths(svg_content: str) -> "list[ColoredPath]":
    """Parse SVG and extract filled rings with colors.

    Shapes are read in document order. Fill and transform are inherited
    from enclosing <g> elements.

    Args:
        svg_content: SVG document text

    Returns:
        List of closed ColoredPath rings in SVG user units. Rings cut from
        the same shape share the same `group` index.

    Raises:
        InvalidInputError: If the document cannot be parsed

    AIDEV-NOTE: svgpathtools uses complex numbers for coordinates.
    Real part = x, imaginary part = y.
    """
    try:
        root = svgpathtools.Document(io.StringIO(svg_content)).tree.getroot()
        matrix = _own_transform(root, np.identity(3))
        shapes = list(_walk_shapes(root, matrix, _own_fill(root, "black")))
    except Exception as e:
        raise InvalidInputError(f"Could not parse SVG: {e}") from e

    colored_paths = []
    for group, (path, fill) in enumerate(shapes):
        color = _parse_fill(fill)
        if color is None:
            continue  # Skip shapes with no fill (outlines only)

        for ring in _split_subpaths(path):
            points = _sample_path_points(ring)
            if len(points) < 3:
                continue
            colored_paths.append(
                ColoredPath(points=points, color=color, is_closed=True, group=group)
            )

    return colored_paths


def colored_paths_to_svg(
    colored_paths: "list[ColoredPath]",
    width: int,
    height: int,
) -> str:
    """Convert colored rings to an SVG document on a 0 0 width height canvas.

    Args:
        colored_paths: Rings to emit; consecutive rings with the same group
            are written as one even-odd <path>
        width: Canvas width in pixels
        height: Canvas height in pixels

    Returns:
        SVG content as string
    """
    elements: list[svg.Element] = []

    for group_paths in _grouped(colored_paths):
        commands: list[svg.PathData] = []
        for path in group_paths:
            (x0, y0), *rest = path.points
            commands.append(svg.MoveTo(round(x0, 2), round(y0, 2)))
            commands.extend(svg.LineTo(round(x, 2), round(y, 2)) for x, y in rest)
            commands.append(svg.ClosePath())

        elements.append(
            svg.Path(
                d=commands,
                fill=color_to_hex(group_paths[0].color),
                fill_rule="evenodd",
            )
        )

    final_svg = svg.SVG(
        width=width,
        height=height,
        viewBox=svg.ViewBoxSpec(0, 0, width, height),
        elements=elements,
    )
    return final_svg.as_str()


def keep_dark_paths(
    colored_paths: "list[ColoredPath]", max_luminance: float = 128.0
) -> "list[ColoredPath]":
    """Drop light (background) fills so only line strokes remain."""
    return [p for p in colored_paths if relative_luminance(p.color) < max_luminance]


class SvgRasterizer:
    """Default vector-to-raster collaborator for the compositor.

    Fills every extracted ring with Pillow's ImageDraw on a transparent
    canvas, scaling the SVG's 0 0 width height space to the target size.
    """

    def rasterize(self, vector: VectorData, width: int, height: int) -> RasterBuffer:
        if width <= 0 or height <= 0:
            raise InvalidInputError(f"Cannot rasterize to {width}x{height}")
        if vector.width <= 0 or vector.height <= 0:
            raise InvalidInputError(
                f"Vector data has zero area ({vector.width}x{vector.height})"
            )

        scale_x = width / vector.width
        scale_y = height / vector.height

        canvas = np.zeros((height, width, 4), dtype=np.uint8)
        for group_paths in _grouped(extract_paths(vector.svg)):
            mask = np.zeros((height, width), dtype=bool)
            for path in group_paths:
                ring = Image.new("1", (width, height), 0)
                ImageDraw.Draw(ring).polygon(
                    [(x * scale_x, y * scale_y) for x, y in path.points], fill=1
                )
                mask ^= np.asarray(ring, dtype=bool)

            r, g, b = group_paths[0].color
            canvas[mask] = (r, g, b, 255)

        result = RasterBuffer(canvas)
        if result.size != (width, height):
            raise DimensionMismatchError(
                f"Rasterized {result.width}x{result.height}, expected {width}x{height}"
            )
        return result


def _grouped(colored_paths: "list[ColoredPath]") -> "list[list[ColoredPath]]":
    groups: list[list[ColoredPath]] = []
    for path in colored_paths:
        if groups and groups[-1][0].group == path.group:
            groups[-1].append(path)
        else:
            groups.append([path])
    return groups


def _split_subpaths(path) -> list:
    """Split a compound SVG path at moveto discontinuities."""
    subpaths = []
    current = []
    for segment in path:
        if current and abs(segment.start - current[-1].end) > 1e-6:
            subpaths.append(svgpathtools.Path(*current))
            current = []
        current.append(segment)
    if current:
        subpaths.append(svgpathtools.Path(*current))
    return subpaths


def _sample_path_points(path) -> "list[tuple[float, float]]":
    """Sample points along an SVG path.

    AIDEV-NOTE: More points for longer paths, capped to keep fills cheap.
    """
    try:
        path_length = path.length()
    except (ZeroDivisionError, ValueError):
        return []
    if path_length <= 1e-6:
        return []

    num_samples = max(MIN_RING_SAMPLES, min(MAX_RING_SAMPLES, int(path_length)))
    points = []
    for i in range(num_samples):
        point = path.point(i / num_samples)
        points.append((float(point.real), float(point.imag)))
    return points


def _walk_shapes(element, matrix, fill):
    """Yield (path, fill) for each shape below element, in document order."""
    for child in element:
        if not isinstance(child.tag, str):
            continue
        tag = child.tag.rpartition("}")[2]
        if tag != "g" and tag not in SHAPE_CONVERSIONS:
            continue  # <defs>, <clipPath>, <text> and friends are not drawn

        child_matrix = _own_transform(child, matrix)
        child_fill = _own_fill(child, fill)
        if tag == "g":
            yield from _walk_shapes(child, child_matrix, child_fill)
        else:
            path = svgpathtools.parse_path(SHAPE_CONVERSIONS[tag](child))
            yield transform(path, child_matrix), child_fill


def _own_transform(element, matrix):
    return matrix.dot(svgpathtools.parse_transform(element.get("transform")))


def _own_fill(element, inherited: str) -> str:
    """Fill declared on element (style wins over attribute), else inherited."""
    fill = element.get("fill")
    for declaration in element.get("style", "").split(";"):
        key, _, value = declaration.partition(":")
        if key.strip() == "fill":
            fill = value
    if fill is None or fill.strip() in ("", "inherit"):
        return inherited
    return fill.strip()


def _parse_fill(fill: str) -> "tuple[int, int, int] | None":
    """Parse a fill value; None for unfilled or unsupported paints."""
    if fill in ("none", "transparent"):
        return None
    try:
        return parse_color(fill)
    except InvalidInputError:
        return None  # url(#gradient), currentColor
