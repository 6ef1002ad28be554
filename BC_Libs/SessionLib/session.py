"""
Crop session state.

The engine functions are stateless; CropSession is the caller-side state
they operate on: the loaded images, the crop rectangles and the current
selections. Every operation computes its result first and then replaces the
whole collection, so a failure leaves the previous state untouched.

Example:
    >>> session = CropSession()
    >>> session.load_images(sorted(Path("frames").glob("*.png")))
    >>> session.auto_detect(TransparentPolicy())
    >>> archives = session.export(on_progress=lambda done, total: None)
"""

from pathlib import Path
from typing import Iterable, List, Optional, Union
import logging

from BC_Libs.constants import (
    ADDED_CROP_FRACTION,
    ARCHIVE_SETTLE_DELAY_SECONDS,
    DEFAULT_FEATHER,
    INITIAL_CROP_FRACTION,
)
from BC_Libs.ImageEditingLib.background_classifier import BackgroundPolicy
from BC_Libs.ImageEditingLib.background_matte import remove_background
from BC_Libs.ImageEditingLib.color_matching import parse_hex_color
from BC_Libs.ImageEditingLib.crop_export import Archive, ProgressCallback, export_crops
from BC_Libs.ImageEditingLib.geometry import apply_crop_field, centered_crop, clamp_crop
from BC_Libs.ImageEditingLib.image_models import CropRect, ImageRecord
from BC_Libs.ImageEditingLib.region_detector import detect_regions
from BC_Libs.SessionLib.image_loader import load_image_records

logger = logging.getLogger(__name__)


class CropSession:
    """Images, crops and selections for one cropping session."""

    def __init__(self):
        self.images: List[ImageRecord] = []
        self.crops: List[CropRect] = []
        self.selected_image_id: Optional[str] = None
        self.selected_crop_id: Optional[str] = None

    @property
    def selected_image(self) -> Optional[ImageRecord]:
        """The selected image, falling back to the first one."""
        for image in self.images:
            if image.image_id == self.selected_image_id:
                return image
        return self.images[0] if self.images else None

    @property
    def selected_crop(self) -> Optional[CropRect]:
        for crop in self.crops:
            if crop.crop_id == self.selected_crop_id:
                return crop
        return None

    def set_images(self, images: Iterable[ImageRecord]) -> None:
        """
        Replace the images and start over with one centred crop.

        The first image is selected and gets a square crop half the size of
        its shorter side. An empty list clears crops and selections.
        """
        images = list(images)
        if images:
            first = images[0]
            crops = [centered_crop(first.width, first.height, INITIAL_CROP_FRACTION)]
        else:
            crops = []

        self.images = images
        self.crops = crops
        self.selected_image_id = images[0].image_id if images else None
        self.selected_crop_id = crops[0].crop_id if crops else None

    def load_images(self, paths: Iterable[Union[str, Path]]) -> List[ImageRecord]:
        """
        Load image files (naturally sorted) and reset the session to them.

        Raises:
            FileNotFoundError: If a file does not exist
            ImageDecodeError: If a file cannot be read; the session is unchanged
        """
        records = load_image_records(paths)
        self.set_images(records)
        logger.info(f"Loaded {len(records)} image(s)")
        return records

    def select_image(self, image_id: str) -> None:
        if not any(image.image_id == image_id for image in self.images):
            raise KeyError(f"No image with id '{image_id}'")
        self.selected_image_id = image_id

    def select_crop(self, crop_id: Optional[str]) -> None:
        if crop_id is not None and not any(crop.crop_id == crop_id for crop in self.crops):
            raise KeyError(f"No crop with id '{crop_id}'")
        self.selected_crop_id = crop_id

    def add_crop(self) -> Optional[CropRect]:
        """Add a centred crop a quarter the size of the reference image's shorter side."""
        reference = self.selected_image
        if reference is None:
            return None
        crop = centered_crop(reference.width, reference.height, ADDED_CROP_FRACTION)
        self.crops = self.crops + [crop]
        self.selected_crop_id = crop.crop_id
        return crop

    def delete_selected_crop(self) -> bool:
        """Delete the selected crop; the first remaining crop becomes selected."""
        if self.selected_crop_id is None:
            return False
        remaining = [crop for crop in self.crops if crop.crop_id != self.selected_crop_id]
        if len(remaining) == len(self.crops):
            return False
        self.crops = remaining
        self.selected_crop_id = remaining[0].crop_id if remaining else None
        return True

    def update_crop(self, crop: CropRect) -> CropRect:
        """
        Replace the crop with the same id, re-clamped to the reference image.

        Raises:
            KeyError: If no crop has that id
        """
        index = self._crop_index(crop.crop_id)
        reference = self.selected_image
        if reference is not None:
            crop = clamp_crop(crop, reference.width, reference.height)
        crops = list(self.crops)
        crops[index] = crop
        self.crops = crops
        return crop

    def set_crop_field(self, crop_id: str, field_name: str, value: int) -> CropRect:
        """Edit one numeric field (x, y, width, height) of a crop."""
        index = self._crop_index(crop_id)
        reference = self.selected_image
        crop = apply_crop_field(self.crops[index], field_name, value, reference.width, reference.height)
        crops = list(self.crops)
        crops[index] = crop
        self.crops = crops
        return crop

    def auto_detect(self, policy: BackgroundPolicy) -> List[CropRect]:
        """
        Replace all crops with the objects detected on the reference image.

        When nothing is detected the crops are cleared and an empty list is
        returned; callers should offer manual crop entry instead.

        Raises:
            ImageDecodeError: If the reference image cannot be decoded;
                the crops are unchanged
        """
        reference = self.selected_image
        if reference is None:
            return []

        boxes = detect_regions(reference, policy)
        crops = [CropRect.from_box(box) for box in boxes]
        self.crops = crops
        self.selected_crop_id = crops[0].crop_id if crops else None

        if crops:
            logger.info(f"Detected {len(crops)} object(s) in {reference.name}")
        else:
            logger.info(f"No objects detected in {reference.name}")
        return crops

    def remove_background(self, color_hex: str, feather: float = DEFAULT_FEATHER) -> bool:
        """
        Remove a background colour from every image.

        Returns:
            False (and changes nothing) when the colour does not parse

        Raises:
            ValueError: If feather is outside 0-100
            ImageDecodeError: If any image cannot be decoded; no image is
                replaced in that case
        """
        if parse_hex_color(color_hex) is None:
            logger.warning(f"Invalid background colour {color_hex!r}; images unchanged")
            return False
        updated = [remove_background(image, color_hex, feather) for image in self.images]
        self.images = updated
        return True

    def export(
        self,
        on_progress: Optional[ProgressCallback] = None,
        settle_delay: float = ARCHIVE_SETTLE_DELAY_SECONDS,
    ) -> List[Archive]:
        """
        Export every crop of every image.

        Returns:
            One archive per crop; empty when there are no images or crops
        """
        if not self.images or not self.crops:
            return []
        return export_crops(self.crops, self.images, on_progress, settle_delay)

    def _crop_index(self, crop_id: str) -> int:
        for index, crop in enumerate(self.crops):
            if crop.crop_id == crop_id:
                return index
        raise KeyError(f"No crop with id '{crop_id}'")
