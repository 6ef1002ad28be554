"""
Command line front end for Bulk Cropper.

Commands:
    detect     Print the objects auto-detected in one image as JSON
    remove-bg  Remove a background colour from images and save PNGs
    export     Apply crops to all images and write one ZIP per crop
    preview    Render one crop across all images as an animated GIF

Settings may come from a JSON file (``--config``) with ``auto_detect``,
``background_removal`` and ``export`` sections; flags override it.

Example:
    bulk-cropper export frames/*.png --auto-detect --mode color --color "#ffffff" --out zips
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from BC_Libs.constants import (
    CONFIG_SECTION_AUTO_DETECT,
    CONFIG_SECTION_BACKGROUND_REMOVAL,
    CONFIG_SECTION_EXPORT,
    DETECT_MODES,
    OUTPUT_FILE_EXTENSION,
    PREVIEW_FPS,
)
from BC_Libs.exceptions import BulkCropperError
from BC_Libs.ImageEditingLib.background_classifier import AutoDetectConfig
from BC_Libs.ImageEditingLib.background_matte import BackgroundRemovalConfig
from BC_Libs.ImageEditingLib.crop_export import (
    ExportConfig,
    iter_export_archives,
    render_animation_preview,
    write_archive,
)
from BC_Libs.ImageEditingLib.geometry import clamp_crop
from BC_Libs.ImageEditingLib.image_models import CropRect
from BC_Libs.ImageEditingLib.region_detector import detect_regions
from BC_Libs.SessionLib.session import CropSession

logger = logging.getLogger(__name__)


def load_config(path: Optional[Path]) -> Dict[str, Any]:
    """
    Load a JSON config file.

    Returns:
        The parsed config, or an empty dict when no path is given

    Raises:
        ValueError: If the file is not a JSON object
    """
    if path is None:
        return {}
    with open(path, "r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"Config file must contain a JSON object: {path}")
    return data


def parse_crop(value: str) -> CropRect:
    """Parse ``x,y,width,height`` into a CropRect (argparse type)."""
    parts = [part.strip() for part in value.split(",")]
    if len(parts) != 4:
        raise argparse.ArgumentTypeError(f"Crop must be x,y,width,height, got {value!r}")
    try:
        return CropRect.from_tuple(tuple(int(part) for part in parts))
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"Invalid crop {value!r}: {e}")


def _section(config: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = config.get(name, {})
    if not isinstance(section, dict):
        raise ValueError(f"Config section '{name}' must be an object")
    return section


def _overrides(args: argparse.Namespace, **mapping: str) -> Dict[str, Any]:
    """Collect flags that were given, keyed by config field name."""
    values = {}
    for field_name, attr in mapping.items():
        value = getattr(args, attr, None)
        if value is not None:
            values[field_name] = value
    return values


def build_auto_detect_config(config: Dict[str, Any], args: argparse.Namespace) -> AutoDetectConfig:
    data = dict(_section(config, CONFIG_SECTION_AUTO_DETECT))
    data.update(_overrides(args, mode="mode", color="color"))
    return AutoDetectConfig.from_dict(data)


def build_background_removal_config(
    config: Dict[str, Any],
    args: argparse.Namespace,
) -> BackgroundRemovalConfig:
    data = dict(_section(config, CONFIG_SECTION_BACKGROUND_REMOVAL))
    data.update(_overrides(args, color="remove_color", feather="feather"))
    return BackgroundRemovalConfig.from_dict(data)


def build_export_config(config: Dict[str, Any], args: argparse.Namespace) -> ExportConfig:
    data = dict(_section(config, CONFIG_SECTION_EXPORT))
    data.update(_overrides(args, settle_delay="settle_delay", output_dir="out"))
    return ExportConfig.from_dict(data)


def _print_progress(processed: int, total: int) -> None:
    print(f"\rProcessed {processed}/{total}", end="\n" if processed == total else "", file=sys.stderr)


def _prepare_session(args: argparse.Namespace, config: Dict[str, Any]) -> CropSession:
    session = CropSession()
    session.load_images(args.images)

    if getattr(args, "remove_color", None) is not None or CONFIG_SECTION_BACKGROUND_REMOVAL in config:
        removal = build_background_removal_config(config, args)
        if not session.remove_background(removal.color, removal.feather):
            logger.warning(f"Background colour {removal.color!r} is not a hex colour; skipped")
    return session


def command_detect(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    detect_config = build_auto_detect_config(config, args)
    session = CropSession()
    session.load_images([args.image])
    boxes = detect_regions(session.images[0], detect_config.to_policy())
    json.dump(
        [{"x": b.x, "y": b.y, "width": b.width, "height": b.height} for b in boxes],
        sys.stdout,
        indent=2,
    )
    print()
    return 0


def command_remove_bg(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    removal = build_background_removal_config(config, args)
    output_dir = Path(args.out)
    output_dir.mkdir(parents=True, exist_ok=True)

    session = CropSession()
    session.load_images(args.images)
    if not session.remove_background(removal.color, removal.feather):
        logger.error(f"Background colour {removal.color!r} is not a hex colour")
        return 2

    for image in session.images:
        path = output_dir / f"{image.base_name}{OUTPUT_FILE_EXTENSION}"
        path.write_bytes(image.load_pixels().encode_png())
        logger.info(f"Saved {path}")
    return 0


def command_export(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    export_config = build_export_config(config, args)
    session = _prepare_session(args, config)
    reference = session.selected_image

    if args.auto_detect:
        crops = session.auto_detect(build_auto_detect_config(config, args).to_policy())
        if not crops:
            logger.error("No objects were detected; pass --crop to add crop areas manually")
            return 1
    elif args.crop:
        crops = [clamp_crop(crop, reference.width, reference.height) for crop in args.crop]
    else:
        crops = session.crops

    output_dir = Path(export_config.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    archives = iter_export_archives(
        crops,
        session.images,
        on_progress=_print_progress,
        settle_delay=float(export_config.settle_delay),
    )
    for archive in archives:
        write_archive(archive, output_dir)
    return 0


def command_preview(args: argparse.Namespace, config: Dict[str, Any]) -> int:
    session = _prepare_session(args, config)
    reference = session.selected_image
    crop = clamp_crop(args.crop, reference.width, reference.height) if args.crop else session.crops[0]

    data = render_animation_preview(session.images, crop, fps=args.fps, reverse=args.reverse)
    output = Path(args.out)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_bytes(data)
    logger.info(f"Saved animation preview to {output}")
    return 0


def _add_detect_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--mode", choices=DETECT_MODES, default=None,
                        help="Background detection mode (default: transparent)")
    parser.add_argument("--color", default=None,
                        help="Background colour for 'color' mode, e.g. #ffffff")


def _add_removal_options(parser: argparse.ArgumentParser, required: bool = False) -> None:
    parser.add_argument("--remove-color", dest="remove_color", default=None, required=required,
                        help="Remove this background colour before cropping")
    parser.add_argument("--feather", type=float, default=None,
                        help="Edge softness 0-100 (0 disables feathering)")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="bulk-cropper",
        description="Batch-crop images with one or more crop areas.",
    )
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    detect = subparsers.add_parser("detect", help="Detect objects in one image")
    detect.add_argument("image", type=Path)
    _add_detect_options(detect)
    detect.set_defaults(handler=command_detect)

    remove_bg = subparsers.add_parser("remove-bg", help="Remove a background colour")
    remove_bg.add_argument("images", type=Path, nargs="+")
    remove_bg.add_argument("--color", dest="remove_color", default=None,
                           help="Background colour to remove (default: #ffffff)")
    remove_bg.add_argument("--feather", type=float, default=None,
                           help="Edge softness 0-100 (0 disables feathering)")
    remove_bg.add_argument("--out", required=True, help="Output directory")
    remove_bg.set_defaults(handler=command_remove_bg)

    export = subparsers.add_parser("export", help="Export crops as ZIP archives")
    export.add_argument("images", type=Path, nargs="+")
    export.add_argument("--crop", type=parse_crop, action="append", default=[],
                        help="Crop area as x,y,width,height (repeatable)")
    export.add_argument("--auto-detect", action="store_true",
                        help="Use detected objects as crop areas")
    _add_detect_options(export)
    _add_removal_options(export)
    export.add_argument("--settle-delay", type=float, default=None,
                        help="Seconds to wait between archives")
    export.add_argument("--out", default=None, help="Output directory")
    export.set_defaults(handler=command_export)

    preview = subparsers.add_parser("preview", help="Render an animated GIF of one crop")
    preview.add_argument("images", type=Path, nargs="+")
    preview.add_argument("--crop", type=parse_crop, default=None,
                         help="Crop area as x,y,width,height")
    preview.add_argument("--fps", type=int, default=PREVIEW_FPS)
    preview.add_argument("--reverse", action="store_true")
    _add_removal_options(preview)
    preview.add_argument("--out", required=True, help="Output GIF file")
    preview.set_defaults(handler=command_preview)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        return args.handler(args, config)
    except (BulkCropperError, OSError, TypeError, ValueError) as e:
        logger.error(str(e))
        return 1


if __name__ == "__main__":
    sys.exit(main())
