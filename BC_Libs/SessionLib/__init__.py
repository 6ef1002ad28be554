"""
SessionLib - Image loading and session state

This module loads image files into records and holds the caller-owned
images, crops and selections the engine operates on.
"""

from BC_Libs.SessionLib.image_loader import (
    is_supported_format,
    load_image_record,
    load_image_records,
    natural_sort_key,
)
from BC_Libs.SessionLib.session import CropSession

__all__ = [
    "is_supported_format",
    "load_image_record",
    "load_image_records",
    "natural_sort_key",
    "CropSession",
]
