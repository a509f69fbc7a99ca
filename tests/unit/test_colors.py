import unittest

import numpy as np

from qrstyle.colors import apply_colors, check_contrast, gradient_field, gradient_position
from qrstyle.generator import encode, rasterize_grid
from qrstyle.shapes import ink_mask
from qrstyle.style import GradientDirection, GradientType, StyleConfig

URL = "https://pebly.app/x1"

BLUE = (0x3B, 0x82, 0xF6)
NAVY = (0x1E, 0x40, 0xAF)
CREAM = (0xFE, 0xF3, 0xC7)


def _base_image():
    return rasterize_grid(encode(URL), 300, 4).image


class ContrastTests(unittest.TestCase):
    def test_black_on_white(self):
        self.assertAlmostEqual(check_contrast((0, 0, 0), (255, 255, 255)), 21.0, places=3)

    def test_symmetric_and_low_for_similar_colours(self):
        self.assertAlmostEqual(check_contrast(BLUE, NAVY), check_contrast(NAVY, BLUE))
        self.assertLess(check_contrast((200, 200, 200), (255, 255, 255)), 4.5)


class GradientFieldTests(unittest.TestCase):
    def test_linear_samples_pixel_centres(self):
        field = gradient_field(2, 1, (0, 0, 0), (200, 100, 40))
        self.assertEqual(field.shape, (1, 2, 3))
        self.assertEqual(tuple(field[0, 0]), (50, 25, 10))
        self.assertEqual(tuple(field[0, 1]), (150, 75, 30))

    def test_directions(self):
        t = gradient_position(10, 10, GradientType.LINEAR, GradientDirection.TO_BOTTOM)
        self.assertLess(t[0, 5], t[9, 5])
        self.assertAlmostEqual(t[0, 0], t[0, 9])
        t = gradient_position(10, 10, GradientType.LINEAR, GradientDirection.TO_TOP_RIGHT)
        self.assertLess(t[9, 0], t[0, 9])
        t = gradient_position(10, 10, GradientType.LINEAR, GradientDirection.TO_BOTTOM_RIGHT)
        self.assertLess(t[0, 0], t[9, 9])

    def test_radial_runs_from_centre_out(self):
        t = gradient_position(100, 100, GradientType.RADIAL, GradientDirection.TO_RIGHT)
        self.assertLess(t[50, 50], 0.02)
        self.assertEqual(t[0, 0], 1.0)
        self.assertTrue(((t >= 0) & (t <= 1)).all())


class ApplyColorsTests(unittest.TestCase):
    def test_solid_recolours_ink_only(self):
        image = _base_image()
        mask = ink_mask(image)
        out = np.asarray(apply_colors(image, StyleConfig(foreground=NAVY)))
        self.assertTrue((out[mask][:, :3] == NAVY).all())
        self.assertTrue((out[~mask][:, :3] == 255).all())

    def test_dual_paints_paper(self):
        image = _base_image()
        mask = ink_mask(image)
        out = np.asarray(apply_colors(image, StyleConfig(color_mode="dual", foreground=NAVY, background=CREAM)))
        self.assertTrue((out[mask][:, :3] == NAVY).all())
        self.assertTrue((out[~mask][:, :3] == CREAM).all())

    def test_gradient_is_masked_by_ink(self):
        image = _base_image()
        mask = ink_mask(image)
        style = StyleConfig(color_mode="gradient", foreground=BLUE, secondary=NAVY,
                            gradient_direction="to-right")
        out = np.asarray(apply_colors(image, style))
        self.assertTrue((out[~mask][:, :3] == 255).all())
        ink = out[mask][:, :3]
        self.assertFalse((ink == 255).all(axis=1).any())
        # Same pixels are still ink afterwards
        np.testing.assert_array_equal(ink_mask(apply_colors(image, style)), mask)
        # Left ink is closer to the start colour than right ink
        ys, xs = np.nonzero(mask)
        left = out[ys[xs.argmin()], xs.min()][:3].astype(int)
        right = out[ys[xs.argmax()], xs.max()][:3].astype(int)
        self.assertLess(np.abs(left - BLUE).sum(), np.abs(right - BLUE).sum())

    def test_alpha_is_preserved(self):
        out = apply_colors(_base_image(), StyleConfig(color_mode="dual", background=CREAM))
        self.assertEqual(out.mode, "RGBA")
        self.assertTrue((np.asarray(out)[..., 3] == 255).all())


if __name__ == "__main__":
    unittest.main()
