"""Exception types raised by the coloring page pipeline.

AIDEV-NOTE: Every stage validates eagerly and raises one of these rather than
returning a partial buffer. Nothing is retried; callers decide.
"""


class ColoringPageError(Exception):
    """Base class for all pipeline failures."""


class InvalidInputError(ColoringPageError, ValueError):
    """Missing, zero-size or malformed image input."""


class InvalidLayerError(InvalidInputError):
    """A layer with zero width or height was supplied to the compositor."""


class InvalidArtworkError(InvalidInputError):
    """Artwork with zero area was supplied to the page layout engine."""


class InvalidCopyCountError(InvalidInputError):
    """Copies per page must be a positive integer."""


class DimensionMismatchError(ColoringPageError, ValueError):
    """Layer or canvas dimensions disagree."""


class TraceError(ColoringPageError, RuntimeError):
    """The vector tracer failed."""


class ExportError(ColoringPageError, RuntimeError):
    """The page-writing sink failed."""
