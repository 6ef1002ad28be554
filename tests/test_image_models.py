"""
Tests for image_models module.

Tests cover:
- PixelBuffer construction, copying and cropping
- PNG encoding
- ImageRecord validation, lazy decoding and replacement
- CropRect / BoundingBox conversions
"""

import io
import unittest
from pathlib import Path

import numpy as np
from PIL import Image

from BC_Libs.exceptions import ImageDecodeError
from BC_Libs.ImageEditingLib.image_models import (
    BoundingBox,
    ColorRGB,
    CropRect,
    ImageRecord,
    PixelBuffer,
)


class TestPixelBuffer(unittest.TestCase):
    """Test PixelBuffer."""

    def test_blank_fills_color(self):
        buffer = PixelBuffer.blank(4, 3, (1, 2, 3, 4))

        self.assertEqual(buffer.size, (4, 3))
        self.assertEqual(buffer.pixel(3, 2), (1, 2, 3, 4))

    def test_rejects_wrong_shape(self):
        with self.assertRaises(ValueError):
            PixelBuffer(np.zeros((3, 4, 3), dtype=np.uint8))

    def test_from_image_converts_to_rgba(self):
        image = Image.new("RGB", (5, 2), (10, 20, 30))

        buffer = PixelBuffer.from_image(image)

        self.assertEqual(buffer.size, (5, 2))
        self.assertEqual(buffer.pixel(0, 0), (10, 20, 30, 255))

    def test_from_image_rejects_non_image(self):
        with self.assertRaises(TypeError):
            PixelBuffer.from_image("not an image")

    def test_copy_is_independent(self):
        buffer = PixelBuffer.blank(2, 2, (0, 0, 0, 255))
        clone = buffer.copy()

        clone.pixels[0, 0] = (9, 9, 9, 9)

        self.assertEqual(buffer.pixel(0, 0), (0, 0, 0, 255))
        self.assertNotEqual(buffer, clone)

    def test_crop_copies_sub_rectangle(self):
        buffer = PixelBuffer.blank(10, 10, (0, 0, 0, 255))
        buffer.pixels[2:5, 3:7] = (255, 0, 0, 255)

        cropped = buffer.crop(3, 2, 4, 3)

        self.assertEqual(cropped.size, (4, 3))
        self.assertTrue(np.all(cropped.pixels == (255, 0, 0, 255)))

    def test_crop_outside_source_is_transparent(self):
        buffer = PixelBuffer.blank(4, 4, (255, 255, 255, 255))

        cropped = buffer.crop(2, 2, 4, 4)

        self.assertEqual(cropped.size, (4, 4))
        self.assertEqual(cropped.pixel(0, 0), (255, 255, 255, 255))
        self.assertEqual(cropped.pixel(3, 3), (0, 0, 0, 0))

    def test_crop_rejects_empty_size(self):
        buffer = PixelBuffer.blank(4, 4)

        with self.assertRaises(ValueError):
            buffer.crop(0, 0, 0, 2)

    def test_encode_png_round_trips_size(self):
        buffer = PixelBuffer.blank(7, 3, (1, 2, 3, 255))

        data = buffer.encode_png()

        with Image.open(io.BytesIO(data)) as image:
            self.assertEqual(image.format, "PNG")
            self.assertEqual(image.size, (7, 3))


class TestImageRecord(unittest.TestCase):
    """Test ImageRecord."""

    def test_from_buffer_takes_size(self):
        record = ImageRecord.from_buffer("a.png", PixelBuffer.blank(6, 4))

        self.assertEqual(record.size, (6, 4))
        self.assertEqual(record.name, "a.png")

    def test_rejects_non_positive_size(self):
        with self.assertRaises(ValueError):
            ImageRecord(image_id="x", name="x.png", width=0, height=4, path=Path("x.png"))

    def test_requires_pixel_source(self):
        with self.assertRaises(ValueError):
            ImageRecord(image_id="x", name="x.png", width=2, height=2)

    def test_rejects_mismatched_buffer(self):
        with self.assertRaises(ValueError):
            ImageRecord(image_id="x", name="x.png", width=3, height=2, buffer=PixelBuffer.blank(2, 2))

    def test_base_name(self):
        buffer = PixelBuffer.blank(1, 1)

        self.assertEqual(ImageRecord.from_buffer("shot.01.png", buffer).base_name, "shot.01")
        self.assertEqual(ImageRecord.from_buffer("noext", buffer).base_name, "noext")

    def test_with_pixels_returns_new_record(self):
        record = ImageRecord.from_buffer("a.png", PixelBuffer.blank(2, 2, (1, 1, 1, 255)))
        replacement = PixelBuffer.blank(2, 2, (0, 0, 0, 0))

        updated = record.with_pixels(replacement)

        self.assertIsNot(updated, record)
        self.assertEqual(updated.image_id, record.image_id)
        self.assertIs(updated.load_pixels(), replacement)
        self.assertEqual(record.load_pixels().pixel(0, 0), (1, 1, 1, 255))

    def test_load_pixels_decodes_file(self):
        import tempfile

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "pic.png"
            Image.new("RGBA", (3, 2), (5, 6, 7, 8)).save(path, format="PNG")
            record = ImageRecord(image_id="pic", name="pic.png", width=3, height=2, path=path)

            buffer = record.load_pixels()

        self.assertEqual(buffer.size, (3, 2))
        self.assertEqual(buffer.pixel(2, 1), (5, 6, 7, 8))

    def test_load_pixels_raises_decode_error(self):
        import tempfile

        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "broken.png"
            path.write_bytes(b"not really a png")
            record = ImageRecord(image_id="b", name="broken.png", width=3, height=2, path=path)

            with self.assertRaises(ImageDecodeError):
                record.load_pixels()


class TestCropRect(unittest.TestCase):
    """Test CropRect and BoundingBox."""

    def test_rejects_empty_crop(self):
        with self.assertRaises(ValueError):
            CropRect("c", 0, 0, 0, 5)

    def test_from_box_assigns_id(self):
        crop = CropRect.from_box(BoundingBox(1, 2, 3, 4))

        self.assertTrue(crop.crop_id)
        self.assertEqual(crop.as_tuple(), (1, 2, 3, 4))
        self.assertEqual(crop.as_box(), BoundingBox(1, 2, 3, 4))

    def test_from_box_ids_are_unique(self):
        box = BoundingBox(0, 0, 1, 1)

        self.assertNotEqual(CropRect.from_box(box).crop_id, CropRect.from_box(box).crop_id)

    def test_color_to_hex(self):
        self.assertEqual(ColorRGB(255, 8, 0).to_hex(), "#ff0800")
