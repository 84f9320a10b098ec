"""Palette suggestion from the source photograph.

AIDEV-NOTE: Seeds the paint palette with the photo's dominant colors.
K-means (scikit-learn) gives the best swatches for photographs; Pillow's
median cut and octree quantizers are faster alternatives.
"""

import numpy as np
from PIL import Image
from sklearn.cluster import KMeans

from errors import InvalidInputError
from models import RasterBuffer

from .utils import buffer_to_image, color_to_hex

# Upper bound on pixels fed to k-means
MAX_SAMPLE_PIXELS = 20000


def suggest_palette(
    buffer: RasterBuffer,
    num_colors: int = 8,
    method: str = "kmeans",
) -> "list[str]":
    """Suggest paint swatches from an image.

    Args:
        buffer: Source image (alpha is ignored; fully transparent pixels skipped)
        num_colors: Number of swatches (1-32)
        method: 'kmeans', 'median_cut' or 'octree'

    Returns:
        Hex colors, most common first

    Raises:
        InvalidInputError: For an empty image, bad count or unknown method
    """
    if buffer.is_empty:
        raise InvalidInputError("Cannot build a palette from an empty image")
    if not 1 <= num_colors <= 32:
        raise InvalidInputError(f"num_colors must be between 1 and 32, got {num_colors}")

    pixels = buffer.pixels.reshape(-1, 4)
    pixels = pixels[pixels[:, 3] > 0][:, :3]
    if len(pixels) == 0:
        raise InvalidInputError("Image has no visible pixels")

    if method == "kmeans":
        colors = quantize_kmeans(pixels, num_colors)
    elif method == "median_cut":
        colors = quantize_pillow(buffer, num_colors, Image.Quantize.MEDIANCUT)
    elif method == "octree":
        colors = quantize_pillow(buffer, num_colors, Image.Quantize.FASTOCTREE)
    else:
        raise InvalidInputError(f"Unknown quantization method: {method}")

    return [color_to_hex(c) for c in colors]


def quantize_kmeans(
    pixels: np.ndarray,
    num_colors: int,
) -> "list[tuple[int, int, int]]":
    """K-means cluster centers ordered by cluster size.

    AIDEV-NOTE: Pixels are subsampled with a fixed seed so the same photo
    always yields the same palette.
    """
    if len(pixels) > MAX_SAMPLE_PIXELS:
        rng = np.random.default_rng(42)
        pixels = pixels[rng.choice(len(pixels), MAX_SAMPLE_PIXELS, replace=False)]

    samples = pixels.astype(np.float64)
    n_clusters = min(num_colors, len(np.unique(pixels, axis=0)))

    kmeans = KMeans(n_clusters=n_clusters, random_state=42, n_init=10)
    kmeans.fit(samples)

    counts = np.bincount(kmeans.labels_, minlength=n_clusters)
    centers = np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)
    order = np.argsort(-counts, kind="stable")
    return [tuple(int(c) for c in centers[i]) for i in order]


def quantize_pillow(
    buffer: RasterBuffer,
    num_colors: int,
    method: Image.Quantize,
) -> "list[tuple[int, int, int]]":
    """Pillow-based quantization, swatches ordered by pixel count."""
    quantized = buffer_to_image(buffer).convert("RGB").quantize(colors=num_colors, method=method)

    palette_data = quantized.getpalette() or []
    used = sorted(quantized.getcolors() or [], reverse=True)
    return [
        (palette_data[i * 3], palette_data[i * 3 + 1], palette_data[i * 3 + 2])
        for _, i in used
    ]
