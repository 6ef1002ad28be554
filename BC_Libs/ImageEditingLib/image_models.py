"""
Image editing data models for Bulk Cropper.

This module defines core data structures used throughout the cropping engine.

Classes:
    PixelBuffer: Owned RGBA8 pixel grid for one image
    ImageRecord: An image's identity, size and pixel source
    BoundingBox: Axis-aligned box in image pixel space (a crop without id)
    CropRect: A crop rectangle with identity
    ColorRGB: An 8-bit RGB colour

Type Aliases:
    RgbaColor: A tuple of 4 integers representing RGBA color values (0-255)
"""

import io
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import NamedTuple, Optional, Tuple

import numpy as np
from PIL import Image

from BC_Libs.constants import DEFAULT_OUTPUT_FORMAT
from BC_Libs.exceptions import ImageDecodeError

RgbaColor = Tuple[int, int, int, int]


class ColorRGB(NamedTuple):
    r: int
    g: int
    b: int

    def to_hex(self) -> str:
        """Format as a lowercase ``#rrggbb`` string."""
        return f"#{self.r:02x}{self.g:02x}{self.b:02x}"


class PixelBuffer:
    """
    Owned RGBA8 pixel grid.

    Pixels are stored as a numpy ``uint8`` array of shape
    ``(height, width, 4)``. Algorithms that change pixels work on a
    ``copy()`` so a buffer held by an ImageRecord is never mutated in place.

    Example:
        >>> buffer = PixelBuffer.blank(4, 3, (255, 255, 255, 255))
        >>> buffer.size
        (4, 3)
        >>> buffer.pixel(0, 0)
        (255, 255, 255, 255)
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 4:
            raise ValueError(
                f"PixelBuffer expects an array of shape (height, width, 4), got {pixels.shape}"
            )
        if pixels.dtype != np.uint8:
            pixels = np.clip(pixels, 0, 255).astype(np.uint8)
        self.pixels = pixels

    @classmethod
    def blank(cls, width: int, height: int, color: RgbaColor = (0, 0, 0, 0)) -> "PixelBuffer":
        """Create a buffer filled with a single colour."""
        pixels = np.empty((height, width, 4), dtype=np.uint8)
        pixels[:, :] = color
        return cls(pixels)

    @classmethod
    def from_image(cls, image: "Image.Image") -> "PixelBuffer":
        """
        Create a buffer from a PIL Image.

        Args:
            image: Any PIL Image; converted to RGBA first

        Returns:
            A new PixelBuffer owning a copy of the image data
        """
        if not hasattr(image, "mode"):
            raise TypeError(f"Expected PIL Image, got {type(image)}")
        if image.mode != "RGBA":
            image = image.convert("RGBA")
        return cls(np.array(image, dtype=np.uint8))

    def to_image(self) -> "Image.Image":
        return Image.fromarray(self.pixels)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    def copy(self) -> "PixelBuffer":
        return PixelBuffer(self.pixels.copy())

    def pixel(self, x: int, y: int) -> RgbaColor:
        r, g, b, a = self.pixels[y, x]
        return int(r), int(g), int(b), int(a)

    def crop(self, x: int, y: int, width: int, height: int) -> "PixelBuffer":
        """
        Copy a sub-rectangle into a new buffer of exactly ``width x height``.

        Any part of the rectangle outside the source stays transparent black,
        matching how a canvas draw clips its source rectangle.

        Raises:
            ValueError: If width or height is not positive
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Crop size must be positive, got {width}x{height}")

        out = np.zeros((height, width, 4), dtype=np.uint8)

        src_left = max(0, x)
        src_top = max(0, y)
        src_right = min(self.width, x + width)
        src_bottom = min(self.height, y + height)

        if src_right > src_left and src_bottom > src_top:
            dst_left = src_left - x
            dst_top = src_top - y
            out[
                dst_top:dst_top + (src_bottom - src_top),
                dst_left:dst_left + (src_right - src_left),
            ] = self.pixels[src_top:src_bottom, src_left:src_right]

        return PixelBuffer(out)

    def encode_png(self) -> bytes:
        """Encode the buffer as PNG bytes."""
        stream = io.BytesIO()
        self.to_image().save(stream, format=DEFAULT_OUTPUT_FORMAT)
        return stream.getvalue()

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PixelBuffer):
            return NotImplemented
        return self.pixels.shape == other.pixels.shape and bool(np.array_equal(self.pixels, other.pixels))

    def __repr__(self) -> str:
        return f"PixelBuffer(width={self.width}, height={self.height})"


def _new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class ImageRecord:
    """
    An image known to the session.

    The pixel source is either an in-memory ``buffer`` or a ``path`` that is
    decoded on demand by ``load_pixels()``. Records are never mutated; a new
    buffer (e.g. after background removal) produces a new record via
    ``with_pixels()``.

    Attributes:
        image_id: Unique identifier
        name: Display name (usually the original file name)
        width: Width in pixels (> 0)
        height: Height in pixels (> 0)
        buffer: Decoded pixels, or None when the record is backed by a file
        path: File the pixels are decoded from when ``buffer`` is None
    """

    image_id: str
    name: str
    width: int
    height: int
    buffer: Optional[PixelBuffer] = field(default=None, compare=False, repr=False)
    path: Optional[Path] = None

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if self.buffer is None and self.path is None:
            raise ValueError(f"ImageRecord '{self.name}' needs a buffer or a path")
        if self.buffer is not None and self.buffer.size != (self.width, self.height):
            raise ValueError(
                f"Buffer size {self.buffer.size} does not match record size "
                f"{(self.width, self.height)}"
            )

    @classmethod
    def from_buffer(cls, name: str, buffer: PixelBuffer, image_id: Optional[str] = None) -> "ImageRecord":
        return cls(
            image_id=image_id or _new_id(name),
            name=name,
            width=buffer.width,
            height=buffer.height,
            buffer=buffer,
        )

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def base_name(self) -> str:
        """The name without its last extension."""
        stem, dot, _ = self.name.rpartition(".")
        return stem if dot and stem else self.name

    def load_pixels(self) -> PixelBuffer:
        """
        Return the record's pixels.

        In-memory records return their buffer; file-backed records decode the
        file each call so callers control how long the pixels stay resident.

        Raises:
            ImageDecodeError: If the file cannot be opened or decoded
        """
        if self.buffer is not None:
            return self.buffer

        try:
            with Image.open(self.path) as img:
                buffer = PixelBuffer.from_image(img)
        except (OSError, ValueError, Image.DecompressionBombError) as e:
            raise ImageDecodeError(f"Failed to load image from {self.path}: {e}") from e

        if buffer.size != self.size:
            raise ImageDecodeError(
                f"Decoded size {buffer.size} of {self.path} does not match "
                f"recorded size {self.size}"
            )
        return buffer

    def with_pixels(self, buffer: PixelBuffer) -> "ImageRecord":
        """Return a copy of this record backed by ``buffer``."""
        return replace(self, buffer=buffer, width=buffer.width, height=buffer.height, path=None)


@dataclass(frozen=True)
class BoundingBox:
    x: int
    y: int
    width: int
    height: int

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height


@dataclass(frozen=True)
class CropRect:
    """
    A crop rectangle in source-image pixel space.

    Crops reference no image; the same rectangles are applied to every image
    of an export. Callers re-clamp after every edit (see ``geometry``).
    """

    crop_id: str
    x: int
    y: int
    width: int
    height: int

    def __post_init__(self):
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Crop size must be positive, got {self.width}x{self.height}")

    @classmethod
    def from_box(cls, box: BoundingBox, crop_id: Optional[str] = None) -> "CropRect":
        return cls(crop_id or _new_id("crop"), box.x, box.y, box.width, box.height)

    @classmethod
    def from_tuple(cls, values: Tuple[int, int, int, int], crop_id: Optional[str] = None) -> "CropRect":
        x, y, width, height = (int(v) for v in values)
        return cls(crop_id or _new_id("crop"), x, y, width, height)

    def as_box(self) -> BoundingBox:
        return BoundingBox(self.x, self.y, self.width, self.height)

    def as_tuple(self) -> Tuple[int, int, int, int]:
        return self.x, self.y, self.width, self.height
