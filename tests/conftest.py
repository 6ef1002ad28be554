"""
Pytest configuration and shared fixtures for Bulk Cropper tests.

This module provides shared test fixtures and configuration
used across multiple test modules.
"""

import pytest
from PIL import Image

from BC_Libs.ImageEditingLib.image_models import ImageRecord, PixelBuffer


@pytest.fixture
def make_buffer():
    """
    Provide a factory for solid-colour pixel buffers.

    Returns:
        Callable (width, height, color) -> PixelBuffer
    """
    def factory(width, height, color=(255, 255, 255, 255)):
        return PixelBuffer.blank(width, height, color)
    return factory


@pytest.fixture
def paint():
    """
    Provide a helper that fills a rectangle of a buffer in place.

    Returns:
        Callable (buffer, x, y, width, height, color) -> buffer
    """
    def fill(buffer, x, y, width, height, color):
        buffer.pixels[y:y + height, x:x + width] = color
        return buffer
    return fill


@pytest.fixture
def make_record(make_buffer):
    """
    Provide a factory for in-memory image records.

    Returns:
        Callable (name, width, height, color) -> ImageRecord
    """
    def factory(name="image.png", width=20, height=10, color=(255, 255, 255, 255)):
        return ImageRecord.from_buffer(name, make_buffer(width, height, color))
    return factory


@pytest.fixture
def image_files(tmp_path):
    """
    Write a few small PNG files and return their paths.

    Files are written in non-natural order: frame10, frame2, frame1.
    Each image is 30x20 with a distinct red value.
    """
    paths = []
    for index in (10, 2, 1):
        path = tmp_path / f"frame{index}.png"
        Image.new("RGBA", (30, 20), (index * 20, 0, 0, 255)).save(path, format="PNG")
        paths.append(path)
    return paths
