"""
Object auto-detection by connected-component analysis.

Every foreground pixel (one the background policy rejects) is grown into a
4-connected region with a breadth-first flood fill. Each region is reported
as its minimal bounding box, in the order regions are first met scanning the
image row-major from (0, 0). Regions spanning ``MIN_REGION_SPAN`` pixels or
fewer in either direction are dropped as noise.

Example:
    >>> from BC_Libs.ImageEditingLib.background_classifier import TransparentPolicy
    >>> boxes = detect_regions(record, TransparentPolicy())
    >>> [box.as_tuple() for box in boxes]
    [(10, 10, 32, 18), (60, 12, 20, 20)]
"""

from collections import deque
from dataclasses import dataclass
from typing import List, Union
import logging

import numpy as np

from BC_Libs.constants import MIN_REGION_SPAN
from BC_Libs.ImageEditingLib.background_classifier import BackgroundPolicy, classify_pixels
from BC_Libs.ImageEditingLib.image_models import BoundingBox, ImageRecord, PixelBuffer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Component:
    """A connected foreground region and the number of pixels it holds."""
    box: BoundingBox
    pixel_count: int

    @property
    def span_x(self) -> int:
        return self.box.width - 1

    @property
    def span_y(self) -> int:
        return self.box.height - 1


def find_components(background: np.ndarray) -> List[Component]:
    """
    Partition the foreground of a classified grid into 4-connected regions.

    Args:
        background: Boolean array (height, width), True for background

    Returns:
        Every component, including specks, in row-major discovery order.
        Each pixel belongs to at most one component.
    """
    if background.ndim != 2:
        raise ValueError(f"Expected a 2D mask, got shape {background.shape}")

    height, width = background.shape
    foreground = (~background).ravel().tolist()
    visited = bytearray(width * height)
    components: List[Component] = []

    # Background pixels never seed or join a region, so only foreground
    # indices need scanning; they come out of flatnonzero in row-major order.
    for start in np.flatnonzero(~background).tolist():
        if visited[start]:
            continue

        visited[start] = 1
        queue = deque([start])
        min_x = max_x = start % width
        min_y = max_y = start // width
        count = 0

        while queue:
            index = queue.popleft()
            cy, cx = divmod(index, width)
            count += 1

            if cx < min_x:
                min_x = cx
            elif cx > max_x:
                max_x = cx
            if cy < min_y:
                min_y = cy
            elif cy > max_y:
                max_y = cy

            if cy + 1 < height:
                neighbor = index + width
                if not visited[neighbor] and foreground[neighbor]:
                    visited[neighbor] = 1
                    queue.append(neighbor)
            if cy > 0:
                neighbor = index - width
                if not visited[neighbor] and foreground[neighbor]:
                    visited[neighbor] = 1
                    queue.append(neighbor)
            if cx + 1 < width:
                neighbor = index + 1
                if not visited[neighbor] and foreground[neighbor]:
                    visited[neighbor] = 1
                    queue.append(neighbor)
            if cx > 0:
                neighbor = index - 1
                if not visited[neighbor] and foreground[neighbor]:
                    visited[neighbor] = 1
                    queue.append(neighbor)

        box = BoundingBox(min_x, min_y, max_x - min_x + 1, max_y - min_y + 1)
        components.append(Component(box=box, pixel_count=count))

    return components


def detect_regions(
    image: Union[ImageRecord, PixelBuffer],
    policy: BackgroundPolicy,
) -> List[BoundingBox]:
    """
    Detect foreground objects and return their bounding boxes.

    Args:
        image: ImageRecord or PixelBuffer to scan
        policy: Background policy deciding which pixels are background

    Returns:
        Bounding boxes in row-major discovery order; empty if nothing was
        found (not an error)

    Raises:
        ImageDecodeError: If a file-backed record cannot be decoded
    """
    buffer = image.load_pixels() if isinstance(image, ImageRecord) else image
    if not isinstance(buffer, PixelBuffer):
        raise TypeError(f"Expected ImageRecord or PixelBuffer, got {type(image)}")

    background = classify_pixels(buffer, policy)
    components = find_components(background)

    boxes = [
        component.box
        for component in components
        if component.span_x > MIN_REGION_SPAN and component.span_y > MIN_REGION_SPAN
    ]

    logger.debug(
        f"Scanned {buffer.width}x{buffer.height} image: "
        f"{len(components)} components, {len(boxes)} kept"
    )
    return boxes
