"""
Background removal by border-seeded flood fill with edge feathering.

Pass 1 removes the background region that is connected to the image border:
every border pixel close to the target colour seeds a 4-connected flood fill
that only flows through matching pixels, and every filled pixel becomes fully
transparent. Same-coloured areas enclosed by the subject are not reachable
and keep their alpha.

Pass 2 (feathering) softens the matte edge. An opaque pixel next to a fully
transparent one fades in proportion to how close its original colour is to
the target: ``alpha = original_alpha * distance / feather`` when
``distance < feather``.

Example:
    >>> record = load_image_record(Path("sprite_01.png"))
    >>> matted = remove_background(record, "#ffffff", feather=25)
    >>> matted is record
    False
"""

from collections import deque
from dataclasses import dataclass
from typing import Any, Dict, Union
import logging

import numpy as np

from BC_Libs.constants import (
    DEFAULT_BACKGROUND_COLOR,
    DEFAULT_FEATHER,
    MATTE_COLOR_THRESHOLD,
    MAX_FEATHER,
    MIN_FEATHER,
)
from BC_Libs.ImageEditingLib.color_matching import distance_map, parse_hex_color
from BC_Libs.ImageEditingLib.image_models import ColorRGB, ImageRecord, PixelBuffer

logger = logging.getLogger(__name__)


def _validate_feather(feather: float) -> float:
    try:
        feather = float(feather)
    except (TypeError, ValueError):
        raise TypeError(f"feather must be a number, got {type(feather)}")
    if not (MIN_FEATHER <= feather <= MAX_FEATHER):
        raise ValueError(f"feather must be {MIN_FEATHER}-{MAX_FEATHER}, got {feather}")
    return feather


def flood_fill_border(matches: np.ndarray) -> np.ndarray:
    """
    Find the matching pixels reachable from the image border.

    Args:
        matches: Boolean array (height, width), True where the colour matches

    Returns:
        Boolean array, True for pixels the border flood fill reaches
    """
    height, width = matches.shape
    match = matches.ravel().tolist()
    visited = bytearray(width * height)
    queue = deque()

    def seed(index: int) -> None:
        if not visited[index] and match[index]:
            visited[index] = 1
            queue.append(index)

    bottom = (height - 1) * width
    for x in range(width):
        seed(x)
        seed(bottom + x)
    for y in range(1, height - 1):
        seed(y * width)
        seed(y * width + width - 1)

    filled = np.zeros(width * height, dtype=bool)
    while queue:
        index = queue.popleft()
        filled[index] = True
        cy, cx = divmod(index, width)
        if cy + 1 < height:
            seed(index + width)
        if cy > 0:
            seed(index - width)
        if cx + 1 < width:
            seed(index + 1)
        if cx > 0:
            seed(index - 1)

    return filled.reshape(height, width)


def find_matte_edges(alpha: np.ndarray) -> np.ndarray:
    """
    Find visible pixels that touch a fully transparent 4-neighbour.

    Args:
        alpha: uint8 alpha channel (height, width)

    Returns:
        Boolean array, True for edge pixels
    """
    transparent = alpha == 0
    touches = np.zeros_like(transparent)
    touches[1:, :] |= transparent[:-1, :]
    touches[:-1, :] |= transparent[1:, :]
    touches[:, 1:] |= transparent[:, :-1]
    touches[:, :-1] |= transparent[:, 1:]
    return (alpha > 0) & touches


def matte_buffer(buffer: PixelBuffer, target: ColorRGB, feather: float) -> PixelBuffer:
    """
    Remove the border-connected ``target`` background from a buffer.

    Args:
        buffer: Source pixels (left untouched)
        target: Background colour to remove
        feather: Feather width 0-100; 0 disables feathering

    Returns:
        A new PixelBuffer with the matte applied
    """
    feather = _validate_feather(feather)

    original = buffer.pixels
    result = buffer.copy()
    distances = distance_map(buffer, target)

    filled = flood_fill_border(distances < MATTE_COLOR_THRESHOLD)
    result.pixels[:, :, 3][filled] = 0
    logger.debug(f"Flood fill cleared {int(filled.sum())} pixels")

    if feather > 0:
        post_fill_alpha = result.pixels[:, :, 3].copy()
        edges = find_matte_edges(post_fill_alpha) & (distances < feather)
        original_alpha = original[:, :, 3].astype(np.float64)
        feathered = np.rint(original_alpha * (distances / feather))
        result.pixels[:, :, 3][edges] = feathered[edges].astype(np.uint8)
        logger.debug(f"Feathered {int(edges.sum())} edge pixels")

    return result


def remove_background(
    image: Union[ImageRecord, PixelBuffer],
    color_hex: str,
    feather: float = DEFAULT_FEATHER,
) -> Union[ImageRecord, PixelBuffer]:
    """
    Remove a background colour from an image.

    Args:
        image: ImageRecord (or bare PixelBuffer) to process
        color_hex: Target colour as ``#RRGGBB`` or ``RRGGBB``
        feather: Feather width 0-100 in colour-distance units; 0 disables it

    Returns:
        A new record (or buffer) with the background made transparent, or
        ``image`` itself when ``color_hex`` does not parse

    Raises:
        ValueError: If feather is outside 0-100
        ImageDecodeError: If a file-backed record cannot be decoded
    """
    feather = _validate_feather(feather)

    target = parse_hex_color(color_hex)
    if target is None:
        logger.warning(f"Ignoring background removal: invalid colour {color_hex!r}")
        return image

    if isinstance(image, PixelBuffer):
        return matte_buffer(image, target, feather)
    if not isinstance(image, ImageRecord):
        raise TypeError(f"Expected ImageRecord or PixelBuffer, got {type(image)}")

    matted = image.with_pixels(matte_buffer(image.load_pixels(), target, feather))
    logger.info(f"Removed {target.to_hex()} background from {image.name}")
    return matted


@dataclass
class BackgroundRemovalConfig:
    """Configuration for background removal.

    Attributes:
        color: Background colour to remove (hex string)
        feather: Edge softness 0-100 (0 disables feathering)
    """
    color: str = DEFAULT_BACKGROUND_COLOR
    feather: float = DEFAULT_FEATHER

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"color": self.color, "feather": self.feather}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BackgroundRemovalConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__}
        return cls(**filtered)
