"""
BC_Libs - Bulk Cropper Library Modules

This package contains core functionality for the Bulk Cropper project,
organized into specialized sub-packages:

- ImageEditingLib: Pixel buffers, background detection/removal, crop export
- SessionLib: Image loading and caller-owned crop session state
"""

__version__ = "0.1.0"
