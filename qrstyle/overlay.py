"""Centre overlays: the logo embedder and the centre caption.

Both overlays cover data modules, so both report the box they obscured.
The engine adds those boxes up and compares the covered share of the grid
with what the chosen error-correction tier can absorb.
"""

from PIL import Image, ImageDraw, ImageFont

from qrstyle.generator import ECCLevel, RasterGeometry
from qrstyle.logging import audit, get_logger, trace
from qrstyle.style import StyleConfig

log = get_logger("overlay")

Box = tuple[int, int, int, int]

# Share of the grid area each ECC tier tolerates being covered
LOGO_SAFE_FRACTION = {
    ECCLevel.L: 0.07,
    ECCLevel.M: 0.15,
    ECCLevel.Q: 0.20,
    ECCLevel.H: 0.25,
}

LOGO_PADDING = 0.06
MIN_LOGO_PADDING = 2
TEXT_PAD_X = 5
TEXT_PAD_Y = 2
TEXT_GAP = 2


def logo_safe_fraction(ecc: ECCLevel) -> float:
    return LOGO_SAFE_FRACTION[ecc]


def logo_footprint(geometry: RasterGeometry, logo_scale: float) -> tuple[int, Box]:
    """Logo side length and the centred background patch box that holds it."""
    shorter = min(geometry.width, geometry.height)
    side = max(1, round(shorter * logo_scale))
    pad = max(MIN_LOGO_PADDING, round(side * LOGO_PADDING))
    patch = side + 2 * pad
    x0 = (geometry.width - patch) // 2
    y0 = (geometry.height - patch) // 2
    return side, (x0, y0, x0 + patch, y0 + patch)


def obscured_fraction(geometry: RasterGeometry, boxes: list[Box]) -> float:
    """Share of the grid area covered by *boxes* (assumed not to overlap)."""
    gx0, gy0, gx1, gy1 = geometry.grid_box()
    covered = 0
    for x0, y0, x1, y1 in boxes:
        w = min(x1, gx1) - max(x0, gx0)
        h = min(y1, gy1) - max(y0, gy0)
        if w > 0 and h > 0:
            covered += w * h
    return covered / float(geometry.grid_px ** 2)


def is_scannable(geometry: RasterGeometry, ecc: ECCLevel, boxes: list[Box]) -> bool:
    return obscured_fraction(geometry, boxes) <= logo_safe_fraction(ecc)


def _scale_preserving_aspect(original_size: tuple[int, int], target: int) -> tuple[int, int]:
    """Scale (w, h) so the larger dimension equals *target*, preserving aspect."""
    w, h = original_size
    aspect = w / h
    if aspect >= 1:
        return target, max(1, int(target / aspect))
    return max(1, int(target * aspect)), target


@trace
def embed_logo(image: Image.Image, geometry: RasterGeometry, logo: Image.Image, style: StyleConfig) -> Box:
    """Paint a background patch at the centre and paste *logo* inside it.

    Returns the patch box. Modules under the patch are overwritten.
    """
    side, patch = logo_footprint(geometry, style.logo_scale)
    draw = ImageDraw.Draw(image)
    draw.rectangle([patch[0], patch[1], patch[2] - 1, patch[3] - 1], fill=style.background)

    new_w, new_h = _scale_preserving_aspect(logo.size, side)
    resized = logo.convert("RGBA").resize((new_w, new_h), Image.LANCZOS)
    x = patch[0] + (patch[2] - patch[0] - new_w) // 2
    y = patch[1] + (patch[3] - patch[1] - new_h) // 2
    image.alpha_composite(resized, (x, y))

    audit("logo.embedded", logger=log,
          logo_size=f"{new_w}x{new_h}", patch=patch,
          coverage=f"{obscured_fraction(geometry, [patch]):.1%}")
    return patch


def _font_candidates(family: str, bold: bool) -> list[str]:
    names = []
    if bold:
        names += [f"{family} Bold.ttf", f"{family}bd.ttf", f"{family}-Bold.ttf", "DejaVuSans-Bold.ttf"]
    names += [family, f"{family}.ttf", "DejaVuSans.ttf"]
    return names


def resolve_font(family: str, size: int, bold: bool = True) -> ImageFont.FreeTypeFont | ImageFont.ImageFont:
    """Find a TrueType font for *family*, falling back to Pillow's bundled default."""
    for name in _font_candidates(family, bold):
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    log.debug("font %r not found, using Pillow default", family)
    return ImageFont.load_default(size=size)


def text_patch(geometry: RasterGeometry, text_box: Box, avoid: Box | None = None) -> Box:
    """Where the caption patch goes: centred, or just below *avoid* when given.

    A caption wider than the image gets a box that runs past both edges.
    """
    left, top, right, bottom = text_box
    w = right - left + 2 * TEXT_PAD_X
    h = bottom - top + 2 * TEXT_PAD_Y
    x0 = (geometry.width - w) // 2
    y0 = (geometry.height - h) // 2
    if avoid is not None:
        y0 = min(avoid[3] + TEXT_GAP, geometry.height - h)
    return (x0, max(0, y0), x0 + w, max(0, y0) + h)


@trace
def draw_center_text(image: Image.Image, geometry: RasterGeometry, style: StyleConfig,
                     avoid: Box | None = None) -> Box:
    """Draw ``style.center_text`` on a background patch and return the patch box.

    With *avoid* (the logo patch) the caption is moved directly below it
    instead of being drawn over it.
    """
    font = resolve_font(style.center_text_font, style.center_text_size, style.center_text_bold)
    draw = ImageDraw.Draw(image)
    text_box = draw.textbbox((0, 0), style.center_text, font=font)
    patch = text_patch(geometry, text_box, avoid)

    draw.rectangle([patch[0], patch[1], patch[2] - 1, patch[3] - 1], fill=style.center_text_background)
    draw.text(
        (patch[0] + TEXT_PAD_X - text_box[0], patch[1] + TEXT_PAD_Y - text_box[1]),
        style.center_text, font=font, fill=style.center_text_color,
    )
    audit("text.drawn", logger=log, text=style.center_text, patch=patch, offset=avoid is not None)
    return patch
