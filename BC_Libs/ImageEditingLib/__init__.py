"""
ImageEditingLib - Core image segmentation, matting and export

This module provides the pixel models, background classification, object
detection, background removal, crop export and preview geometry for the
Bulk Cropper project.
"""

from BC_Libs.ImageEditingLib.image_models import (
    BoundingBox,
    ColorRGB,
    CropRect,
    ImageRecord,
    PixelBuffer,
    RgbaColor,
)
from BC_Libs.ImageEditingLib.color_matching import (
    color_distance,
    parse_hex_color,
    sample_color_hex,
)
from BC_Libs.ImageEditingLib.background_classifier import (
    AutoDetectConfig,
    BackgroundPolicy,
    ColorKeyPolicy,
    TransparentPolicy,
    classify_pixels,
    is_background,
    make_policy,
)
from BC_Libs.ImageEditingLib.region_detector import detect_regions
from BC_Libs.ImageEditingLib.background_matte import (
    BackgroundRemovalConfig,
    remove_background,
)
from BC_Libs.ImageEditingLib.crop_export import (
    Archive,
    ExportConfig,
    ExportJob,
    export_crops,
    iter_export_archives,
    render_animation_preview,
    write_archive,
)
from BC_Libs.ImageEditingLib.geometry import (
    ViewportProjection,
    apply_crop_field,
    centered_crop,
    clamp_crop,
    clamp_crop_move,
    project_crop_to_viewport,
    resize_crop,
)

__all__ = [
    "BoundingBox",
    "ColorRGB",
    "CropRect",
    "ImageRecord",
    "PixelBuffer",
    "RgbaColor",
    "color_distance",
    "parse_hex_color",
    "sample_color_hex",
    "AutoDetectConfig",
    "BackgroundPolicy",
    "ColorKeyPolicy",
    "TransparentPolicy",
    "classify_pixels",
    "is_background",
    "make_policy",
    "detect_regions",
    "BackgroundRemovalConfig",
    "remove_background",
    "Archive",
    "ExportConfig",
    "ExportJob",
    "export_crops",
    "iter_export_archives",
    "render_animation_preview",
    "write_archive",
    "ViewportProjection",
    "apply_crop_field",
    "centered_crop",
    "clamp_crop",
    "clamp_crop_move",
    "project_crop_to_viewport",
    "resize_crop",
]
