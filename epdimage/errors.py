"""
Error types raised by the conversion pipeline.
"""


class EpdImageError(Exception):
    """Base class for every conversion failure."""


class InvalidSourceFormat(EpdImageError):
    """The input file is not a BMP/JPEG we can read."""


class UnsupportedConfiguration(EpdImageError):
    """The requested options cannot be applied to this source image."""


class UnsupportedGeometry(EpdImageError):
    """A geometry transform cannot be applied to this image layout."""
