"""
Batch crop export.

Applies every crop rectangle to every image and bundles the results into one
archive per crop. Work is crop-major, then image order, and the progress
sink hears about every (crop, image) pair.

Classes:
    Archive: One crop's exported files (filename -> PNG bytes)
    ExportJob: Progress accounting for one export run
    ExportConfig: Configuration for export runs

Functions:
    sample_crop: Copy a crop out of a pixel buffer
    archive_name: Name of the archive for one crop
    iter_export_archives: Yield one archive per crop as each completes
    export_crops: Run a whole export and return every archive
    write_archive: Write an archive to disk as a ZIP file
    render_animation_preview: Render a crop across all images as an animated GIF

Example:
    >>> archives = export_crops(crops, images, on_progress=print, settle_delay=0)
    1 4
    2 4
    3 4
    4 4
    >>> [archive.name for archive in archives]
    ['frame_01-crop-1', 'frame_01-crop-2']
"""

import io
import time
import zipfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence
import logging

from BC_Libs.constants import (
    ARCHIVE_EXTENSION,
    ARCHIVE_SETTLE_DELAY_SECONDS,
    ARCHIVE_SUFFIX,
    DEFAULT_ARCHIVE_BASE_NAME,
    OUTPUT_FILE_EXTENSION,
    PREVIEW_FPS,
)
from BC_Libs.exceptions import SamplingError
from BC_Libs.ImageEditingLib.image_models import CropRect, ImageRecord, PixelBuffer

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int, int], None]


@dataclass
class Archive:
    """The exported files of one crop, in image order."""
    name: str
    files: Dict[str, bytes] = field(default_factory=dict)

    @property
    def filename(self) -> str:
        return f"{self.name}{ARCHIVE_EXTENSION}"

    def __len__(self) -> int:
        return len(self.files)

    def to_zip_bytes(self) -> bytes:
        """Serialize the archive as a deflated ZIP file."""
        stream = io.BytesIO()
        with zipfile.ZipFile(stream, "w", zipfile.ZIP_DEFLATED) as zf:
            for filename, data in self.files.items():
                zf.writestr(filename, data)
        return stream.getvalue()


@dataclass
class ExportJob:
    """
    Progress accounting for one export run.

    Attributes:
        crop_count: Number of crops in the run
        image_count: Number of images in the run
        on_progress: Called with (processed, total) after every pair
        processed: Pairs handled so far, including skipped ones
    """
    crop_count: int
    image_count: int
    on_progress: Optional[ProgressCallback] = None
    processed: int = 0

    @property
    def total(self) -> int:
        return self.crop_count * self.image_count

    @property
    def is_complete(self) -> bool:
        return self.processed >= self.total

    def advance(self) -> None:
        self.processed += 1
        if self.on_progress is not None:
            self.on_progress(self.processed, self.total)


@dataclass
class ExportConfig:
    """Configuration for export runs.

    Attributes:
        settle_delay: Seconds to wait between archives (default: 0.5)
        output_dir: Directory archives are written to (default: current directory)
    """
    settle_delay: float = ARCHIVE_SETTLE_DELAY_SECONDS
    output_dir: str = "."

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {"settle_delay": self.settle_delay, "output_dir": self.output_dir}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ExportConfig":
        """Create from dictionary."""
        filtered = {k: v for k, v in data.items()
                    if k in cls.__dataclass_fields__}
        return cls(**filtered)


def sample_crop(buffer: PixelBuffer, crop: CropRect) -> PixelBuffer:
    """
    Copy ``crop`` out of ``buffer`` into a new ``crop.width x crop.height`` buffer.

    Raises:
        SamplingError: If the crop cannot be sampled from this buffer
    """
    try:
        return buffer.crop(crop.x, crop.y, crop.width, crop.height)
    except (ValueError, MemoryError) as e:
        raise SamplingError(f"Cannot sample crop {crop.as_tuple()}: {e}") from e


def archive_name(index: int, crop_count: int, images: Sequence[ImageRecord]) -> str:
    """
    Name of the archive for the crop at ``index`` (0-based).

    Archives are named after the first image; a 1-based crop number is
    appended only when there is more than one crop.
    """
    base = images[0].base_name if images else ""
    base = base or DEFAULT_ARCHIVE_BASE_NAME
    if crop_count > 1:
        return f"{base}{ARCHIVE_SUFFIX}-{index + 1}"
    return f"{base}{ARCHIVE_SUFFIX}"


def output_filename(image: ImageRecord) -> str:
    return f"{image.base_name}{OUTPUT_FILE_EXTENSION}"


def iter_export_archives(
    crops: Sequence[CropRect],
    images: Sequence[ImageRecord],
    on_progress: Optional[ProgressCallback] = None,
    settle_delay: float = ARCHIVE_SETTLE_DELAY_SECONDS,
) -> Iterator[Archive]:
    """
    Export every crop of every image, yielding one archive per crop.

    Each archive is yielded as soon as its crop is done, so at most one
    archive and one decoded source image are held at a time. A crop that
    cannot be sampled or encoded for one image is logged and skipped; it
    still counts toward progress.

    Args:
        crops: Crop rectangles (non-empty), in output order
        images: Images (non-empty), in output order
        on_progress: Called with (processed, total) after every pair
        settle_delay: Seconds to wait between archives

    Yields:
        One Archive per crop

    Raises:
        ValueError: If crops or images is empty
        ImageDecodeError: If an image cannot be decoded at all
    """
    crops = list(crops)
    images = list(images)
    if not crops:
        raise ValueError("Export requires at least one crop")
    if not images:
        raise ValueError("Export requires at least one image")

    job = ExportJob(crop_count=len(crops), image_count=len(images), on_progress=on_progress)
    logger.info(f"Exporting {job.crop_count} crop(s) from {job.image_count} image(s)")

    for index, crop in enumerate(crops):
        archive = Archive(name=archive_name(index, len(crops), images))

        for image in images:
            buffer = image.load_pixels()
            try:
                data = sample_crop(buffer, crop).encode_png()
            except (SamplingError, OSError) as e:
                logger.warning(f"Skipping {image.name} for crop {index + 1}: {e}")
            else:
                archive.files[output_filename(image)] = data
            finally:
                # Release before the next decode.
                del buffer
                job.advance()

        logger.debug(f"Archive {archive.filename} holds {len(archive)} file(s)")
        yield archive

        if index < len(crops) - 1 and settle_delay > 0:
            time.sleep(settle_delay)


def export_crops(
    crops: Sequence[CropRect],
    images: Sequence[ImageRecord],
    on_progress: Optional[ProgressCallback] = None,
    settle_delay: float = ARCHIVE_SETTLE_DELAY_SECONDS,
) -> List[Archive]:
    """
    Run a full export and return every archive, crop-major.

    See ``iter_export_archives`` for arguments and error behaviour.
    """
    return list(iter_export_archives(crops, images, on_progress, settle_delay))


def write_archive(archive: Archive, output_dir: Path) -> Path:
    """
    Write an archive to ``output_dir`` as ``<name>.zip``.

    Returns:
        Path of the written ZIP file

    Raises:
        OSError: If the directory is missing or the file cannot be written
    """
    output_dir = Path(output_dir)
    if not output_dir.exists():
        raise OSError(f"Output directory does not exist: {output_dir}")

    if not output_dir.is_dir():
        raise OSError(f"Output path is not a directory: {output_dir}")

    path = output_dir / archive.filename
    path.write_bytes(archive.to_zip_bytes())
    logger.info(f"Wrote {path} ({len(archive)} file(s))")
    return path


def render_animation_preview(
    images: Sequence[ImageRecord],
    crop: CropRect,
    fps: int = PREVIEW_FPS,
    reverse: bool = False,
) -> bytes:
    """
    Render one crop across all images as a looping animated GIF.

    Args:
        images: Frames in playback order
        crop: Crop applied to every frame
        fps: Frames per second (default: 10)
        reverse: Play the frames backwards

    Returns:
        GIF file bytes

    Raises:
        ValueError: If images is empty or fps is not positive
    """
    if not images:
        raise ValueError("Animation preview requires at least one image")
    if fps <= 0:
        raise ValueError(f"fps must be positive, got {fps}")

    ordered = list(reversed(images)) if reverse else list(images)
    frames = [sample_crop(image.load_pixels(), crop).to_image() for image in ordered]

    stream = io.BytesIO()
    frames[0].save(
        stream,
        format="GIF",
        save_all=True,
        append_images=frames[1:],
        duration=int(round(1000 / fps)),
        loop=0,
        disposal=2,
    )
    return stream.getvalue()
