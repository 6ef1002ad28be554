"""
Crop geometry: preview projection, clamping and placement.

Functions:
    project_crop_to_viewport: Cover-fit a crop into a preview viewport
    clamp_crop: Keep a resized crop inside the image
    clamp_crop_move: Keep a moved crop inside the image without resizing it
    resize_crop: Apply a drag on a resize handle
    apply_crop_field: Apply a numeric edit to one crop field
    centered_crop: Build a square crop centred on the image
"""

from dataclasses import replace
from typing import NamedTuple, Optional, Tuple

from BC_Libs.constants import DEFAULT_VIEWPORT_SIZE, MIN_CROP_SIZE
from BC_Libs.ImageEditingLib.image_models import CropRect

Size = Tuple[int, int]

CROP_FIELDS = ("x", "y", "width", "height")
RESIZE_HANDLES = ("n", "s", "e", "w", "ne", "nw", "se", "sw", "move")


class ViewportProjection(NamedTuple):
    scale: float
    translate_x: float
    translate_y: float
    scaled_width: float
    scaled_height: float


def project_crop_to_viewport(
    crop: CropRect,
    source_size: Size,
    viewport_size: Size = DEFAULT_VIEWPORT_SIZE,
) -> Optional[ViewportProjection]:
    """
    Compute how to draw the source image so ``crop`` covers the viewport.

    The scale makes the crop fill the viewport completely (like CSS
    ``object-fit: cover``) and the translation centres the crop in it.

    Args:
        crop: Crop rectangle in source pixel space
        source_size: (width, height) of the source image
        viewport_size: (width, height) of the preview viewport (default: 128x128)

    Returns:
        The projection, or None for degenerate sizes (callers show a
        placeholder instead)
    """
    image_width, image_height = source_size
    viewport_width, viewport_height = viewport_size

    if crop is None or crop.width <= 0 or crop.height <= 0:
        return None
    if image_width <= 0 or image_height <= 0:
        return None
    if viewport_width <= 0 or viewport_height <= 0:
        return None

    crop_aspect = crop.width / crop.height
    viewport_aspect = viewport_width / viewport_height

    if crop_aspect > viewport_aspect:
        scale = viewport_height / crop.height
    else:
        scale = viewport_width / crop.width

    translate_x = -(crop.x * scale) + (viewport_width - crop.width * scale) / 2
    translate_y = -(crop.y * scale) + (viewport_height - crop.height * scale) / 2

    return ViewportProjection(
        scale=scale,
        translate_x=translate_x,
        translate_y=translate_y,
        scaled_width=image_width * scale,
        scaled_height=image_height * scale,
    )


def clamp_crop(crop: CropRect, image_width: int, image_height: int) -> CropRect:
    """Clamp a crop after a resize: origin floored at 0, size cut at the edges."""
    x = min(max(0, crop.x), image_width - 1)
    y = min(max(0, crop.y), image_height - 1)
    width = min(crop.width, image_width - x)
    height = min(crop.height, image_height - y)
    return replace(crop, x=x, y=y, width=width, height=height)


def clamp_crop_move(crop: CropRect, image_width: int, image_height: int) -> CropRect:
    """Clamp a crop after a move: size kept (up to the image size), origin clamped."""
    width = min(crop.width, image_width)
    height = min(crop.height, image_height)
    x = max(0, min(crop.x, image_width - width))
    y = max(0, min(crop.y, image_height - height))
    return replace(crop, x=x, y=y, width=width, height=height)


def resize_crop(
    crop: CropRect,
    handle: str,
    delta_x: int,
    delta_y: int,
    image_width: int,
    image_height: int,
    min_size: int = MIN_CROP_SIZE,
) -> CropRect:
    """
    Apply a handle drag of (delta_x, delta_y) image pixels to ``crop``.

    Args:
        crop: The crop as it was when the drag started
        handle: Compass handle ('n', 'se', ...) or 'move'
        delta_x: Horizontal drag distance in image pixels
        delta_y: Vertical drag distance in image pixels
        image_width: Width of the reference image
        image_height: Height of the reference image
        min_size: Smallest width/height a resize may produce

    Returns:
        The dragged crop, clamped to the image

    Raises:
        ValueError: If handle is unknown
    """
    if handle not in RESIZE_HANDLES:
        raise ValueError(f"Unknown handle: {handle}. Valid handles: {', '.join(RESIZE_HANDLES)}")

    x, y, width, height = crop.x, crop.y, crop.width, crop.height

    if handle == "move":
        moved = replace(crop, x=x + delta_x, y=y + delta_y)
        return clamp_crop_move(moved, image_width, image_height)

    if "e" in handle:
        width += delta_x
    if "w" in handle:
        width -= delta_x
        x += delta_x
    if "s" in handle:
        height += delta_y
    if "n" in handle:
        height -= delta_y
        y += delta_y

    if width < min_size:
        if "w" in handle:
            x = crop.x + crop.width - min_size
        width = min_size
    if height < min_size:
        if "n" in handle:
            y = crop.y + crop.height - min_size
        height = min_size

    return clamp_crop(replace(crop, x=x, y=y, width=width, height=height), image_width, image_height)


def apply_crop_field(
    crop: CropRect,
    field_name: str,
    value: int,
    image_width: int,
    image_height: int,
) -> CropRect:
    """
    Set one numeric field of a crop, pulling it back inside the image.

    Moving x or y past the far edge pins the crop to that edge; growing
    width or height past it cuts the size at the edge.

    Raises:
        ValueError: If field_name is unknown, or a size is set to 0 or less
    """
    if field_name not in CROP_FIELDS:
        raise ValueError(f"Unknown crop field: {field_name}")

    value = int(value)
    values = {"x": crop.x, "y": crop.y, "width": crop.width, "height": crop.height}
    values[field_name] = value

    if field_name == "x" and value + values["width"] > image_width:
        values["x"] = image_width - values["width"]
    elif field_name == "y" and value + values["height"] > image_height:
        values["y"] = image_height - values["height"]
    elif field_name == "width" and values["x"] + value > image_width:
        values["width"] = image_width - values["x"]
    elif field_name == "height" and values["y"] + value > image_height:
        values["height"] = image_height - values["y"]

    return clamp_crop(replace(crop, **values), image_width, image_height)


def centered_crop(image_width: int, image_height: int, fraction: float, crop_id: Optional[str] = None) -> CropRect:
    """
    Build a square crop centred on the image.

    The side is ``fraction`` of the image's shorter side (at least 1 pixel).
    """
    size = max(1, int(min(image_width, image_height) * fraction))
    x = (image_width - size) // 2
    y = (image_height - size) // 2
    return CropRect.from_tuple((x, y, size, size), crop_id=crop_id)
