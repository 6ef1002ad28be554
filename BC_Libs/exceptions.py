"""
Exception types raised by the Bulk Cropper engine.

Bad arguments raise the built-in ValueError/TypeError. The classes here
cover the two failure modes the export pipeline has to tell apart: an image
that cannot be decoded at all, and a single crop that cannot be sampled.
"""


class BulkCropperError(Exception):
    """Base class for Bulk Cropper errors."""


class ImageDecodeError(BulkCropperError, IOError):
    """An image file could not be opened or decoded."""


class SamplingError(BulkCropperError, RuntimeError):
    """A crop could not be sampled from its source image."""
