import contextlib
import io
import json
import logging
import tempfile
import unittest
from pathlib import Path

from PIL import Image

from qrstyle.cli import build_parser, build_style, main
from qrstyle.logging import ROOT_LOGGER
from qrstyle.style import ColorMode, FrameStyle, ModuleShape

URL = "https://pebly.app/x1"


class CliTests(unittest.TestCase):
    def setUp(self):
        root = logging.getLogger(ROOT_LOGGER)
        self.saved = (root.level, list(root.handlers))
        self.tmp = tempfile.TemporaryDirectory()
        self.out_dir = Path(self.tmp.name)

    def tearDown(self):
        root = logging.getLogger(ROOT_LOGGER)
        root.setLevel(self.saved[0])
        root.handlers = self.saved[1]
        self.tmp.cleanup()

    def _run(self, *argv):
        stdout, stderr = io.StringIO(), io.StringIO()
        with contextlib.redirect_stdout(stdout), contextlib.redirect_stderr(stderr):
            code = main(list(argv))
        return code, stdout.getvalue(), stderr.getvalue()

    def test_build_style_flags_override_json(self):
        style_file = self.out_dir / "style.json"
        style_file.write_text(json.dumps({"pattern": "diamond", "frameStyle": "arrow", "size": 256}))
        args = build_parser().parse_args([
            "render", URL, "--style-json", str(style_file), "--shape", "circle",
            "--bg", "#fef3c7", "--text", "Menu", "--regular",
        ])
        style = build_style(args)
        self.assertIs(style.shape, ModuleShape.CIRCLE)
        self.assertIs(style.frame_style, FrameStyle.ARROW)
        self.assertEqual(style.size, 256)
        self.assertIs(style.color_mode, ColorMode.DUAL)
        self.assertEqual(style.center_text, "Menu")
        self.assertFalse(style.center_text_bold)

    def test_render_writes_image(self):
        output = self.out_dir / "nested" / "qr.png"
        code, stdout, _ = self._run("render", URL, "-o", str(output), "--shape", "rounded",
                                    "--corner", "extra-rounded", "--frame", "scan-me")
        self.assertEqual(code, 0)
        self.assertIn("Rendered:", stdout)
        with Image.open(output) as img:
            self.assertEqual(img.size, (300, 336))

    def test_render_then_verify(self):
        output = self.out_dir / "plain.png"
        code, _, _ = self._run("render", URL, "-o", str(output), "--verify")
        self.assertEqual(code, 0)
        code, stdout, _ = self._run("verify", str(output), "--expected", URL)
        self.assertEqual(code, 0)
        self.assertIn("PASS", stdout)

    def test_invalid_style_is_reported(self):
        code, _, stderr = self._run("render", URL, "-o", str(self.out_dir / "x.png"), "--size=-5")
        self.assertEqual(code, 1)
        self.assertIn("size", stderr)

    def test_low_scannability_exit_code(self):
        logo = self.out_dir / "logo.png"
        Image.new("RGBA", (32, 32), (200, 0, 0, 255)).save(logo)
        code, stdout, _ = self._run("render", URL, "-o", str(self.out_dir / "l.png"),
                                    "-e", "L", "--logo", str(logo))
        self.assertEqual(code, 2)
        self.assertIn("low_scannability", stdout)

    def test_no_command(self):
        code, _, _ = self._run()
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
