import unittest

import numpy as np

from qrstyle.frames import apply_frame, band_height
from qrstyle.generator import encode, rasterize_grid
from qrstyle.style import StyleConfig

URL = "https://pebly.app/x1"
WHITE = (255, 255, 255, 255)
BLACK = (0, 0, 0, 255)


def _base(margin=4):
    return rasterize_grid(encode(URL), 300, margin)


class FrameTests(unittest.TestCase):
    def test_none_is_identity(self):
        base = _base()
        image = base.image.copy()
        self.assertIs(apply_frame(image, base.geometry, StyleConfig()), image)

    def test_band_height(self):
        self.assertEqual(band_height(300), 36)
        self.assertEqual(band_height(100), 20)

    def test_simple_border_stays_in_quiet_zone(self):
        base = _base()
        out = apply_frame(base.image.copy(), base.geometry, StyleConfig(frame_style="simple"))
        self.assertEqual(out.size, (300, 300))
        self.assertEqual(out.getpixel((5, 150)), BLACK)
        self.assertEqual(out.getpixel((6, 150)), BLACK)
        self.assertEqual(out.getpixel((7, 150)), WHITE)
        self.assertEqual(out.getpixel((150, 294)), BLACK)
        box = base.geometry.grid_box()
        self.assertEqual(out.crop(box).tobytes(), base.image.crop(box).tobytes())

    def test_border_keeps_a_clear_ring_next_to_the_grid(self):
        base = _base(margin=1)
        geo = base.geometry
        out = apply_frame(base.image.copy(), geo, StyleConfig(margin=1, frame_style="simple"))
        pixels = np.asarray(out)
        q = geo.quiet_zone_px
        # The pixel column just outside the grid is still paper
        self.assertTrue((pixels[q:300 - q, q - 1] == WHITE).all())

    def test_minimal_draws_corners_only(self):
        base = _base()
        out = apply_frame(base.image.copy(), base.geometry, StyleConfig(frame_style="minimal"))
        self.assertEqual(out.getpixel((5, 5)), BLACK)
        self.assertEqual(out.getpixel((294, 294)), BLACK)
        self.assertEqual(out.getpixel((150, 5)), WHITE)

    def test_band_frames_append_below(self):
        for frame in ("scan-me", "scan-me-black", "arrow", "gradient", "social"):
            with self.subTest(frame=frame):
                base = _base()
                style = StyleConfig(frame_style=frame, color_mode="gradient", secondary="#1e40af")
                out = apply_frame(base.image.copy(), base.geometry, style)
                self.assertEqual(out.size, (300, 336))
                self.assertEqual(out.crop((0, 0, 300, 300)).tobytes(), base.image.tobytes())
                band = np.asarray(out.crop((0, 300, 300, 336)))[..., :3]
                # Something was painted in the band
                self.assertGreater(len(np.unique(band.reshape(-1, 3), axis=0)), 1)

    def test_scan_me_black_band(self):
        base = _base()
        out = apply_frame(base.image.copy(), base.geometry, StyleConfig(frame_style="scan-me-black"))
        self.assertEqual(out.getpixel((1, 301)), BLACK)
        self.assertEqual(out.getpixel((298, 334)), BLACK)
        band = np.asarray(out.crop((0, 300, 300, 336)))[..., :3]
        self.assertTrue((band > 200).all(axis=-1).any())

    def test_band_frame_without_margin(self):
        base = _base(margin=0)
        out = apply_frame(base.image.copy(), base.geometry, StyleConfig(margin=0, frame_style="scan-me"))
        self.assertEqual(out.height, 336)


if __name__ == "__main__":
    unittest.main()
