"""qrstyle CLI: render styled QR codes and check that they scan."""

import argparse
import json
import sys
from pathlib import Path

from PIL import Image

from qrstyle.errors import QRStyleError
from qrstyle.logging import audit, get_logger, setup_logging
from qrstyle.style import (
    ColorMode,
    CornerStyle,
    FrameStyle,
    GradientDirection,
    GradientType,
    ModuleShape,
    StyleConfig,
)

log = get_logger("cli")

# CLI flag -> StyleConfig field, for flags that map one to one
_STYLE_FLAGS = {
    "size": "size",
    "margin": "margin",
    "ecc": "ecc",
    "shape": "shape",
    "corner": "corner_style",
    "frame": "frame_style",
    "color_mode": "color_mode",
    "fg": "foreground",
    "bg": "background",
    "secondary": "secondary",
    "gradient_type": "gradient_type",
    "gradient_direction": "gradient_direction",
    "logo": "logo",
    "logo_scale": "logo_scale",
    "text": "center_text",
    "text_size": "center_text_size",
    "font": "center_text_font",
    "text_color": "center_text_color",
    "text_bg": "center_text_background",
    "frame_text": "frame_text",
}


def _values(enum_cls) -> list[str]:
    return [m.value for m in enum_cls]


def build_style(args) -> StyleConfig:
    """Merge --style-json (if any) with explicit flags; flags win."""
    data = {}
    if args.style_json:
        data.update(json.loads(Path(args.style_json).read_text()))
    for flag, name in _STYLE_FLAGS.items():
        value = getattr(args, flag)
        if value is not None:
            data[name] = value
    if args.regular:
        data["center_text_bold"] = False
    return StyleConfig.from_dict(data)


def cmd_render(args):
    """Render a styled QR code to an image file."""
    from qrstyle.engine import RenderEngine

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)

    style = build_style(args)
    engine = RenderEngine(verify_scan=args.verify)
    result = engine.render(args.data, style)
    result.image.save(output)

    print(f"Rendered: {output} ({result.image.width}x{result.image.height})")
    print(f"  Version: {result.grid.version}, ECC: {style.ecc.name}, "
          f"module: {result.geometry.module_size}px")
    print(f"  Shape: {style.shape.value}, corners: {style.corner_style.value}, "
          f"colors: {style.color_mode.value}, frame: {style.frame_style.value}")
    for warning in result.warnings:
        print(f"  WARNING: {warning.value}")
    return 0 if result.ok else 2


def cmd_verify(args):
    """Decode a QR code image."""
    from qrstyle.verify import scan

    img = Image.open(args.image)
    r = scan(img, expected_data=args.expected)
    status = "PASS" if r.success else "FAIL"
    print(f"  [{r.decoder:8s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
    return 0 if r.success else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="qrstyle", description="Styled QR code renderer")

    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- render ---
    p_render = subparsers.add_parser("render", help="Render a styled QR code")
    p_render.add_argument("data", help="URL or text to encode")
    p_render.add_argument("-o", "--output", default="output/qr.png", help="Output file path")
    p_render.add_argument("--style-json", default=None, help="JSON file with style fields (camelCase or snake_case)")
    p_render.add_argument("--size", type=int, default=None, help="Output size in pixels (default 300)")
    p_render.add_argument("--margin", type=int, default=None, help="Quiet zone in modules (default 4)")
    p_render.add_argument("-e", "--ecc", default=None, choices=["L", "M", "Q", "H"], help="Error correction level")
    p_render.add_argument("--shape", default=None, choices=_values(ModuleShape), help="Data module shape")
    p_render.add_argument("--corner", default=None, choices=_values(CornerStyle), help="Finder pattern style")
    p_render.add_argument("--frame", default=None, choices=_values(FrameStyle), help="Frame style")
    p_render.add_argument("--color-mode", default=None, choices=_values(ColorMode))
    p_render.add_argument("--fg", default=None, help="Foreground / gradient start colour (hex)")
    p_render.add_argument("--bg", default=None, help="Background colour (hex)")
    p_render.add_argument("--secondary", default=None, help="Gradient end colour (hex)")
    p_render.add_argument("--gradient-type", default=None, choices=_values(GradientType))
    p_render.add_argument("--gradient-direction", default=None, choices=_values(GradientDirection))
    p_render.add_argument("--logo", default=None, help="Logo path, URL or data URI")
    p_render.add_argument("--logo-scale", type=float, default=None, help="Logo side as a fraction of the image")
    p_render.add_argument("--text", default=None, help="Centre caption")
    p_render.add_argument("--text-size", type=int, default=None, help="Caption font size in pixels")
    p_render.add_argument("--font", default=None, help="Caption font family or .ttf path")
    p_render.add_argument("--regular", action="store_true", help="Use a regular instead of bold caption")
    p_render.add_argument("--text-color", default=None, help="Caption colour (hex)")
    p_render.add_argument("--text-bg", default=None, help="Caption patch colour (hex)")
    p_render.add_argument("--frame-text", default=None, help="Caption for band frames (default 'SCAN ME')")
    p_render.add_argument("--verify", action="store_true", help="Decode the result and warn if it fails")

    # --- verify ---
    p_ver = subparsers.add_parser("verify", help="Verify a QR code image")
    p_ver.add_argument("image", help="Path to QR code image")
    p_ver.add_argument("--expected", default=None, help="Expected decoded data (fails if mismatch)")

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(level="DEBUG" if args.verbose else "INFO", log_file=args.log_file)
    audit("cli.start", logger=log, command=args.command, verbose=args.verbose)

    if args.command is None:
        parser.print_help()
        return 1

    commands = {
        "render": cmd_render,
        "verify": cmd_verify,
    }
    try:
        code = commands[args.command](args)
    except QRStyleError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    audit("cli.done", logger=log, command=args.command, exit_code=code)
    return code


if __name__ == "__main__":
    sys.exit(main())
