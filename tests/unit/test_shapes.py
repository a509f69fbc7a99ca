import unittest

import numpy as np

from qrstyle.generator import INK, PAPER, ECCLevel, encode, rasterize_grid
from qrstyle.shapes import apply_module_shape, classify_modules, ink_mask
from qrstyle.style import ModuleShape

URL = "https://pebly.app/x1"


def _base():
    return rasterize_grid(encode(URL, ECCLevel.M), 300, 4)


def _data_modules(base, dark):
    modules = base.grid.to_array()
    geo = base.geometry
    return [(r, c) for r in range(geo.grid_size) for c in range(geo.grid_size)
            if modules[r, c] == dark and not geo.in_finder(r, c)]


class ClassifyTests(unittest.TestCase):
    def test_plain_raster_classifies_back_to_grid(self):
        base = _base()
        np.testing.assert_array_equal(classify_modules(base.image, base.geometry), base.grid.to_array())

    def test_ink_mask(self):
        base = _base()
        mask = ink_mask(base.image)
        self.assertEqual(mask.shape, (300, 300))
        self.assertFalse(mask[0, 0])
        self.assertTrue(mask[37, 37])


class ModuleShapeTests(unittest.TestCase):
    def test_square_is_identity(self):
        base = _base()
        image = base.image.copy()
        out = apply_module_shape(image, base.geometry, ModuleShape.SQUARE)
        self.assertEqual(out.tobytes(), base.image.tobytes())

    def test_shapes_keep_centres_and_trim_corners(self):
        for shape in (ModuleShape.CIRCLE, ModuleShape.ROUNDED, ModuleShape.DIAMOND):
            with self.subTest(shape=shape):
                base = _base()
                out = apply_module_shape(base.image.copy(), base.geometry, shape)
                for row, col in _data_modules(base, dark=True)[:20]:
                    x0, y0, x1, y1 = base.geometry.module_box(row, col)
                    self.assertEqual(out.getpixel(((x0 + x1) // 2, (y0 + y1) // 2)), INK)
                    self.assertEqual(out.getpixel((x0, y0)), PAPER)

    def test_paper_modules_stay_paper(self):
        base = _base()
        out = apply_module_shape(base.image.copy(), base.geometry, ModuleShape.CIRCLE)
        for row, col in _data_modules(base, dark=False):
            x0, y0, x1, y1 = base.geometry.module_box(row, col)
            self.assertEqual(out.getpixel(((x0 + x1) // 2, (y0 + y1) // 2)), PAPER)

    def test_finders_and_quiet_zone_untouched(self):
        base = _base()
        geo = base.geometry
        out = apply_module_shape(base.image.copy(), geo, ModuleShape.DIAMOND)
        span = 7 * geo.module_size
        for row, col in geo.finder_origins():
            x0, y0, _, _ = geo.module_box(row, col)
            box = (x0, y0, x0 + span, y0 + span)
            self.assertEqual(out.crop(box).tobytes(), base.image.crop(box).tobytes())
        self.assertEqual(out.crop((0, 0, 300, geo.offset)).tobytes(),
                         base.image.crop((0, 0, 300, geo.offset)).tobytes())

    def test_tiny_modules_stay_square(self):
        base = rasterize_grid(encode(URL), 33, 4)
        self.assertEqual(base.geometry.module_size, 1)
        out = apply_module_shape(base.image.copy(), base.geometry, ModuleShape.CIRCLE)
        self.assertEqual(out.tobytes(), base.image.tobytes())


if __name__ == "__main__":
    unittest.main()
