"""
Tests for background removal.

Tests cover:
- Border-seeded flood fill (enclosed islands survive)
- Edge feathering
- Invalid colours and feather values
- Source buffers and records are never mutated
"""

import math
import unittest

import numpy as np

from BC_Libs.ImageEditingLib.background_matte import (
    BackgroundRemovalConfig,
    find_matte_edges,
    flood_fill_border,
    remove_background,
)
from BC_Libs.ImageEditingLib.image_models import ImageRecord, PixelBuffer

WHITE = (255, 255, 255, 255)
RED = (200, 30, 30, 255)
OFF_WHITE = (242, 242, 242, 255)


def _paint(buffer, x, y, width, height, color):
    buffer.pixels[y:y + height, x:x + width] = color
    return buffer


class TestFloodFillBorder(unittest.TestCase):
    """Test the border-seeded fill."""

    def test_fills_connected_matches(self):
        matches = np.ones((5, 6), dtype=bool)
        matches[2, 2] = False

        filled = flood_fill_border(matches)

        self.assertEqual(int(filled.sum()), 29)
        self.assertFalse(filled[2, 2])

    def test_skips_enclosed_matches(self):
        matches = np.ones((7, 7), dtype=bool)
        matches[1:6, 1:6] = False
        matches[3, 3] = True

        filled = flood_fill_border(matches)

        self.assertFalse(filled[3, 3])
        self.assertTrue(filled[0, 0])

    def test_single_row(self):
        filled = flood_fill_border(np.array([[True, False, True]]))

        self.assertEqual(filled.tolist(), [[True, False, True]])


class TestFindMatteEdges(unittest.TestCase):
    """Test edge detection after the fill."""

    def test_edge_ring(self):
        alpha = np.zeros((6, 6), dtype=np.uint8)
        alpha[1:5, 1:5] = 255

        edges = find_matte_edges(alpha)

        self.assertEqual(int(edges.sum()), 12)
        self.assertFalse(edges[2, 2])
        self.assertFalse(edges[0, 0])

    def test_image_border_is_not_an_edge(self):
        alpha = np.full((3, 3), 255, dtype=np.uint8)

        self.assertFalse(find_matte_edges(alpha).any())


class TestRemoveBackground(unittest.TestCase):
    """Test remove_background on buffers and records."""

    def test_solid_color_becomes_transparent(self):
        buffer = PixelBuffer.blank(8, 6, WHITE)

        result = remove_background(buffer, "#ffffff", feather=0)

        self.assertTrue(np.all(result.pixels[:, :, 3] == 0))
        # Colour channels are left alone.
        self.assertTrue(np.all(result.pixels[:, :, :3] == 255))

    def test_enclosed_island_survives(self):
        buffer = PixelBuffer.blank(12, 12, WHITE)
        _paint(buffer, 2, 2, 8, 8, RED)
        _paint(buffer, 4, 4, 4, 4, WHITE)

        result = remove_background(buffer, "ffffff", feather=0)

        self.assertEqual(result.pixel(0, 0)[3], 0)
        self.assertEqual(result.pixel(5, 5), WHITE)
        self.assertEqual(result.pixel(2, 2), RED)

    def test_feathers_close_edge_pixels(self):
        buffer = _paint(PixelBuffer.blank(10, 10, WHITE), 3, 3, 4, 4, OFF_WHITE)
        distance = math.sqrt(3 * 13 ** 2)

        result = remove_background(buffer, "#ffffff", feather=25)

        expected = round(255 * distance / 25)
        self.assertEqual(result.pixel(3, 3)[3], expected)
        self.assertEqual(result.pixel(6, 4)[3], expected)
        # Interior pixels do not touch the cleared area.
        self.assertEqual(result.pixel(4, 4)[3], 255)
        self.assertEqual(result.pixel(0, 0)[3], 0)

    def test_feather_scales_original_alpha(self):
        buffer = _paint(PixelBuffer.blank(10, 10, WHITE), 3, 3, 4, 4, (242, 242, 242, 128))
        distance = math.sqrt(3 * 13 ** 2)

        result = remove_background(buffer, "#ffffff", feather=25)

        self.assertEqual(result.pixel(3, 3)[3], round(128 * distance / 25))
        self.assertEqual(result.pixel(3, 3)[3], 115)
        self.assertEqual(result.pixel(4, 4)[3], 128)

    def test_edge_at_exact_feather_distance_keeps_alpha(self):
        # (255, 255, 225) is exactly 30 away from white.
        buffer = _paint(PixelBuffer.blank(10, 10, WHITE), 3, 3, 4, 4, (255, 255, 225, 200))

        result = remove_background(buffer, "#ffffff", feather=30)

        self.assertEqual(result.pixel(3, 3), (255, 255, 225, 200))
        self.assertEqual(result.pixel(0, 0)[3], 0)

    def test_distant_edge_pixels_keep_alpha(self):
        buffer = _paint(PixelBuffer.blank(10, 10, WHITE), 3, 3, 4, 4, RED)

        result = remove_background(buffer, "#ffffff", feather=25)

        self.assertEqual(result.pixel(3, 3), RED)

    def test_feather_zero_leaves_edges(self):
        buffer = _paint(PixelBuffer.blank(10, 10, WHITE), 3, 3, 4, 4, OFF_WHITE)

        result = remove_background(buffer, "#ffffff", feather=0)

        self.assertEqual(result.pixel(3, 3), OFF_WHITE)

    def test_no_border_match_changes_nothing(self):
        buffer = PixelBuffer.blank(6, 6, RED)
        _paint(buffer, 2, 2, 2, 2, WHITE)

        result = remove_background(buffer, "#ffffff", feather=25)

        self.assertEqual(result, buffer)

    def test_invalid_color_returns_input(self):
        buffer = PixelBuffer.blank(4, 4, WHITE)
        record = ImageRecord.from_buffer("a.png", buffer)

        self.assertIs(remove_background(buffer, "notacolor"), buffer)
        self.assertIs(remove_background(record, "#12345"), record)
        self.assertIs(remove_background(buffer, "#١٢٣٤٥٦"), buffer)

    def test_feather_out_of_range(self):
        buffer = PixelBuffer.blank(4, 4, WHITE)

        with self.assertRaises(ValueError):
            remove_background(buffer, "#ffffff", feather=101)
        with self.assertRaises(ValueError):
            remove_background(buffer, "#ffffff", feather=-1)
        with self.assertRaises(TypeError):
            remove_background(buffer, "#ffffff", feather="soft")

    def test_input_not_mutated(self):
        buffer = _paint(PixelBuffer.blank(10, 10, WHITE), 3, 3, 4, 4, RED)
        before = buffer.copy()

        remove_background(buffer, "#ffffff", feather=25)

        self.assertEqual(buffer, before)

    def test_record_gets_new_pixels(self):
        record = ImageRecord.from_buffer("a.png", PixelBuffer.blank(5, 5, WHITE))

        matted = remove_background(record, "#ffffff", feather=0)

        self.assertIsNot(matted, record)
        self.assertEqual(matted.image_id, record.image_id)
        self.assertEqual(matted.load_pixels().pixel(2, 2)[3], 0)
        self.assertEqual(record.load_pixels().pixel(2, 2)[3], 255)

    def test_rejects_other_types(self):
        with self.assertRaises(TypeError):
            remove_background("a.png", "#ffffff")


class TestBackgroundRemovalConfig(unittest.TestCase):
    """Test BackgroundRemovalConfig dataclass."""

    def test_round_trip(self):
        config = BackgroundRemovalConfig.from_dict({"color": "#000000", "feather": 10, "x": 1})

        self.assertEqual(config.to_dict(), {"color": "#000000", "feather": 10})

    def test_defaults(self):
        config = BackgroundRemovalConfig()

        self.assertEqual(config.color, "#ffffff")
        self.assertEqual(config.feather, 25)
