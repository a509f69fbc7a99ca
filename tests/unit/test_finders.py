import unittest

from qrstyle.finders import apply_finder_style
from qrstyle.generator import INK, PAPER, encode, rasterize_grid
from qrstyle.style import CornerStyle

URL = "https://pebly.app/x1"


def _base():
    return rasterize_grid(encode(URL), 300, 4)


class FinderStyleTests(unittest.TestCase):
    def test_square_redraw_matches_encoder_output(self):
        base = _base()
        out = apply_finder_style(base.image.copy(), base.geometry, CornerStyle.SQUARE)
        self.assertEqual(out.tobytes(), base.image.tobytes())

    def test_every_style_keeps_ring_gap_core(self):
        for style in CornerStyle:
            with self.subTest(style=style):
                base = _base()
                geo = base.geometry
                ms = geo.module_size
                out = apply_finder_style(base.image.copy(), geo, style)
                for row, col in geo.finder_origins():
                    x, y, _, _ = geo.module_box(row, col)
                    half = ms // 2
                    # ring (top edge, middle), gap, core centre
                    self.assertEqual(out.getpixel((x + 3 * ms + half, y + half)), INK)
                    self.assertEqual(out.getpixel((x + 3 * ms + half, y + ms + half)), PAPER)
                    self.assertEqual(out.getpixel((x + 3 * ms + half, y + 3 * ms + half)), INK)

    def test_round_styles_clear_the_outer_corner(self):
        for style in (CornerStyle.ROUNDED, CornerStyle.CIRCLE, CornerStyle.EXTRA_ROUNDED):
            with self.subTest(style=style):
                base = _base()
                out = apply_finder_style(base.image.copy(), base.geometry, style)
                for row, col in base.geometry.finder_origins():
                    x, y, _, _ = base.geometry.module_box(row, col)
                    self.assertEqual(out.getpixel((x, y)), PAPER)

    def test_data_modules_untouched(self):
        base = _base()
        geo = base.geometry
        out = apply_finder_style(base.image.copy(), geo, CornerStyle.EXTRA_ROUNDED)
        box = geo.module_box(10, 10)[:2] + geo.module_box(17, 17)[2:]
        self.assertEqual(out.crop(box).tobytes(), base.image.crop(box).tobytes())


if __name__ == "__main__":
    unittest.main()
