"""
Colour matching utilities.

Functions:
    color_distance: Euclidean distance between two RGB triples
    parse_hex_color: Parse ``#RRGGBB`` / ``RRGGBB`` into a ColorRGB
    distance_map: Per-pixel distance of a whole buffer to one colour
    sample_color_hex: Read the colour under a pixel as a hex string
"""

import math
import re
from typing import Optional, Sequence

import numpy as np

from BC_Libs.ImageEditingLib.image_models import ColorRGB, PixelBuffer

HEX_COLOR_PATTERN = re.compile(r"#?([0-9a-f]{2})([0-9a-f]{2})([0-9a-f]{2})", re.IGNORECASE)


def color_distance(first: Sequence[int], second: Sequence[int]) -> float:
    """
    Euclidean distance between the RGB parts of two colours.

    Only the first three channels are compared, so RGBA tuples can be
    passed directly.
    """
    dr = int(first[0]) - int(second[0])
    dg = int(first[1]) - int(second[1])
    db = int(first[2]) - int(second[2])
    return math.sqrt(dr * dr + dg * dg + db * db)


def parse_hex_color(value: Optional[str]) -> Optional[ColorRGB]:
    """
    Parse a 6-hex-digit colour string.

    Args:
        value: ``#RRGGBB`` or ``RRGGBB`` (case-insensitive)

    Returns:
        The parsed ColorRGB, or None if the string is malformed
    """
    if not isinstance(value, str):
        return None
    match = HEX_COLOR_PATTERN.fullmatch(value)
    if not match:
        return None
    return ColorRGB(*(int(group, 16) for group in match.groups()))


def distance_map(buffer: PixelBuffer, color: Sequence[int]) -> np.ndarray:
    """
    Compute the RGB distance of every pixel to ``color``.

    Returns:
        float64 array of shape (height, width)
    """
    rgb = buffer.pixels[:, :, :3].astype(np.float64)
    target = np.array(color[:3], dtype=np.float64)
    return np.sqrt(np.sum((rgb - target) ** 2, axis=2))


def sample_color_hex(buffer: PixelBuffer, x: int, y: int) -> str:
    """
    Return the colour of one pixel as ``#rrggbb`` (alpha dropped).

    Raises:
        IndexError: If (x, y) lies outside the buffer
    """
    if not (0 <= x < buffer.width and 0 <= y < buffer.height):
        raise IndexError(f"Pixel ({x}, {y}) outside {buffer.width}x{buffer.height} image")
    r, g, b, _ = buffer.pixel(x, y)
    return ColorRGB(r, g, b).to_hex()
