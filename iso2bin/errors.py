"""
Exception types raised while converting ISO/CUE images.
"""


class ConversionError(Exception):
    """Base exception for everything that can abort a single conversion."""


class MissingInputError(ConversionError):
    """Raised when the image, its sibling CUE sheet or a config file is absent."""


class FormatError(ConversionError, ValueError):
    """Raised for a malformed timecode or CUE line."""


class ParseError(ConversionError):
    """Raised when CUE text cannot be read as a sequence of lines."""


class RangeError(ConversionError, ValueError):
    """Raised when a computed track start or length falls outside the image."""


class ImageIOError(ConversionError):
    """Raised when reading or writing a file fails."""
