"""Exceptions raised by the watermark engine."""


class WatermarkError(Exception):
    """Base class for all watermark tool errors."""


class LoadError(WatermarkError):
    """A reference capture or input image is missing, corrupt or empty."""


class ResizeError(WatermarkError):
    """Resampling could not produce the requested dimensions."""


class EmptyInputError(WatermarkError, ValueError):
    """An image with zero pixels was passed to compositing."""


class InvalidRegionError(WatermarkError, ValueError):
    """A caller-supplied region has no positive area."""


class ImageFormatError(WatermarkError, ValueError):
    """Pixel buffer has an unsupported dtype or channel layout."""
