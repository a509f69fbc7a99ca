"""Frame Decorator: borders in the quiet zone, or a caption band appended below the code."""

from PIL import Image, ImageDraw

from qrstyle.colors import gradient_field
from qrstyle.generator import RasterGeometry
from qrstyle.logging import audit, get_logger, trace
from qrstyle.overlay import resolve_font
from qrstyle.style import FrameStyle, GradientDirection, GradientType, StyleConfig

log = get_logger("frames")

BLACK = (0, 0, 0)
WHITE = (255, 255, 255)

MIN_BAND = 20
BAND_RATIO = 0.12
CAPTION_FONT = "Arial"


def band_height(width: int) -> int:
    return max(MIN_BAND, round(width * BAND_RATIO))


def _stroke_and_inset(geometry: RasterGeometry) -> tuple[int, int]:
    """Stroke width and edge inset that keep a border strictly inside the quiet zone."""
    quiet = geometry.quiet_zone_px
    stroke = max(1, min(2, quiet // 3))
    inset = min(5, max(0, (quiet - stroke) // 2))
    return stroke, inset


def _draw_border(image, geometry, style):
    stroke, inset = _stroke_and_inset(geometry)
    draw = ImageDraw.Draw(image)
    draw.rectangle(
        [inset, inset, geometry.width - 1 - inset, geometry.height - 1 - inset],
        outline=style.foreground, width=stroke,
    )
    return image


def _draw_corner_brackets(image, geometry, style):
    stroke, inset = _stroke_and_inset(geometry)
    arm = max(3, geometry.width // 8)
    right = geometry.width - 1 - inset
    bottom = geometry.height - 1 - inset
    draw = ImageDraw.Draw(image)
    for x, y, dx, dy in ((inset, inset, 1, 1), (right, inset, -1, 1),
                         (inset, bottom, 1, -1), (right, bottom, -1, -1)):
        # Arms run along the two edges of the corner, inside the quiet band
        for i in range(stroke):
            draw.line([(x, y + dy * i), (x + dx * arm, y + dy * i)], fill=style.foreground)
            draw.line([(x + dx * i, y), (x + dx * i, y + dy * arm)], fill=style.foreground)
    return image


def _caption(draw, band_box, text, fill, bold=True):
    x0, y0, x1, y1 = band_box
    font = resolve_font(CAPTION_FONT, max(8, round((y1 - y0) * 0.45)), bold)
    left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
    tx = x0 + (x1 - x0 - (right - left)) // 2 - left
    ty = y0 + (y1 - y0 - (bottom - top)) // 2 - top
    draw.text((tx, ty), text, font=font, fill=fill)
    return (tx + left, ty + top, tx + right, ty + bottom)


def _band_scan_me(canvas, draw, band, style):
    _caption(draw, band, style.frame_text, style.foreground)


def _band_scan_me_black(canvas, draw, band, style):
    draw.rectangle([band[0], band[1], band[2] - 1, band[3] - 1], fill=BLACK)
    _caption(draw, band, style.frame_text, WHITE)


def _band_arrow(canvas, draw, band, style):
    text_box = _caption(draw, band, style.frame_text, style.foreground)
    size = max(4, (band[3] - band[1]) // 3)
    cx = max(band[0] + size, text_box[0] - size * 2)
    cy = (band[1] + band[3]) // 2
    draw.polygon([(cx, cy - size), (cx + size, cy + size // 2), (cx - size, cy + size // 2)],
                 fill=style.foreground)


def _band_gradient(canvas, draw, band, style):
    field = gradient_field(band[2] - band[0], band[3] - band[1], style.foreground, style.secondary,
                           GradientType.LINEAR, GradientDirection.TO_RIGHT)
    canvas.paste(Image.fromarray(field).convert("RGBA"), (band[0], band[1]))
    _caption(draw, band, style.frame_text, WHITE)


def _band_social(canvas, draw, band, style):
    height = band[3] - band[1]
    width = band[2] - band[0]
    pill = [band[0] + width * 15 // 100, band[1] + height // 8,
            band[2] - 1 - width * 15 // 100, band[3] - 1 - height // 8]
    draw.rounded_rectangle(pill, radius=max(1, (pill[3] - pill[1]) // 2), fill=style.foreground)
    _caption(draw, band, style.frame_text, style.background)


_BAND_PAINTERS = {
    FrameStyle.SCAN_ME: _band_scan_me,
    FrameStyle.SCAN_ME_BLACK: _band_scan_me_black,
    FrameStyle.ARROW: _band_arrow,
    FrameStyle.GRADIENT: _band_gradient,
    FrameStyle.SOCIAL: _band_social,
}

_EDGE_PAINTERS = {
    FrameStyle.SIMPLE: _draw_border,
    FrameStyle.MINIMAL: _draw_corner_brackets,
}


@trace
def apply_frame(image: Image.Image, geometry: RasterGeometry, style: StyleConfig) -> Image.Image:
    """Decorate *image* with ``style.frame_style``.

    Edge frames draw in the quiet zone and return the same image. Band frames
    return a taller image: the code unchanged on top, the caption band below.
    """
    frame = style.frame_style
    if frame is FrameStyle.NONE:
        return image

    if frame in _EDGE_PAINTERS:
        result = _EDGE_PAINTERS[frame](image, geometry, style)
    else:
        band = band_height(image.width)
        result = Image.new("RGBA", (image.width, image.height + band), style.background + (255,))
        result.paste(image, (0, 0))
        draw = ImageDraw.Draw(result)
        _BAND_PAINTERS[frame](result, draw, (0, image.height, image.width, image.height + band), style)

    audit("frame.applied", logger=log, frame=frame.value, size=f"{result.width}x{result.height}")
    return result
