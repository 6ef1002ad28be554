"""
Image loading for Bulk Cropper.

Turns image files into ImageRecords. Only the image header is read up front
(for the size); pixels are decoded on demand by ``ImageRecord.load_pixels``
so a large batch never sits in memory all at once.

Functions:
    is_supported_format: Check a path's extension against the image formats
    load_image_record: Open one file as an ImageRecord
    load_image_records: Open many files, naturally sorted by name
    natural_sort_key: Sort key ordering 'frame2' before 'frame10'
"""

import re
import uuid
from pathlib import Path
from typing import Iterable, List, Tuple, Union

from PIL import Image

from BC_Libs.constants import SUPPORTED_STANDARD_IMAGES
from BC_Libs.exceptions import ImageDecodeError
from BC_Libs.ImageEditingLib.image_models import ImageRecord

TRAILING_NUMBER_PATTERN = re.compile(r"(\d+)(?!.*\d)", re.ASCII)
NUMERIC_CHUNK_PATTERN = re.compile(r"(\d+)", re.ASCII)


def is_supported_format(file_path: Path) -> bool:
    return Path(file_path).suffix.lower() in SUPPORTED_STANDARD_IMAGES


def _stem(name: str) -> str:
    stem, dot, _ = name.rpartition(".")
    return stem if dot else ""


def natural_sort_key(name: str) -> Tuple:
    """
    Sort key for file names.

    Names are ordered by the last number in their stem first, then by a
    case-insensitive comparison in which digit runs compare numerically.

    Names without a number always sort after numbered ones, so 'b1.png'
    comes before 'a.png' (a browser ``localeCompare`` fallback puts 'a.png'
    first).
    """
    match = TRAILING_NUMBER_PATTERN.search(_stem(name))
    number = (0, int(match.group(1))) if match else (1, 0)
    # Split with a capture group: digit runs sit at the odd indices.
    chunks = tuple(
        (0, int(chunk), "") if index % 2 else (1, 0, chunk.lower())
        for index, chunk in enumerate(NUMERIC_CHUNK_PATTERN.split(name))
        if chunk
    )
    return number, chunks


def load_image_record(file_path: Union[str, Path]) -> ImageRecord:
    """
    Open an image file as a file-backed ImageRecord.

    Args:
        file_path: Path to the image file

    Returns:
        ImageRecord with the file's name and size; pixels stay on disk

    Raises:
        FileNotFoundError: If the file does not exist
        ImageDecodeError: If the file has an unsupported extension or is not
            a readable image
    """
    file_path = Path(file_path)

    if not file_path.exists():
        raise FileNotFoundError(f"Image file not found: {file_path}")

    if not file_path.is_file():
        raise ImageDecodeError(f"Path is not a file: {file_path}")

    if not is_supported_format(file_path):
        raise ImageDecodeError(
            f"Unsupported image format '{file_path.suffix}': {file_path}. "
            f"Supported: {', '.join(sorted(SUPPORTED_STANDARD_IMAGES))}"
        )

    try:
        with Image.open(file_path) as img:
            width, height = img.size
    except (OSError, ValueError, Image.DecompressionBombError) as e:
        raise ImageDecodeError(f"Failed to load image from {file_path}: {e}") from e

    if width <= 0 or height <= 0:
        raise ImageDecodeError(f"Image has no pixels: {file_path}")

    return ImageRecord(
        image_id=f"{file_path.name}-{uuid.uuid4().hex[:12]}",
        name=file_path.name,
        width=width,
        height=height,
        path=file_path,
    )


def load_image_records(paths: Iterable[Union[str, Path]]) -> List[ImageRecord]:
    """
    Open several image files, naturally sorted by file name.

    All files are opened before anything is returned, so one unreadable
    file fails the whole batch.

    Raises:
        FileNotFoundError: If any file does not exist
        ImageDecodeError: If any file is not a readable image
    """
    records = [load_image_record(path) for path in paths]
    records.sort(key=lambda record: natural_sort_key(record.name))
    return records
