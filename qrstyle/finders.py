"""Finder Pattern Styler: redraw the three 7x7 corner markers in the chosen corner style."""

from PIL import Image, ImageDraw

from qrstyle.generator import FINDER_MODULES, INK, PAPER, RasterGeometry
from qrstyle.logging import audit, get_logger, trace
from qrstyle.style import CornerStyle

log = get_logger("finders")

# (ring, gap, core) corner radius in modules
_RADII = {
    CornerStyle.ROUNDED: (1.0, 0.5, 0.34),
    CornerStyle.EXTRA_ROUNDED: (2.0, 1.0, 0.67),
}


def _nested_boxes(x: int, y: int, module_size: int) -> list[list[int]]:
    """Inclusive pixel boxes of the 7x7 ring, 5x5 gap and 3x3 core."""
    span = FINDER_MODULES * module_size
    boxes = []
    for inset_modules in (0, 1, 2):
        i = inset_modules * module_size
        boxes.append([x + i, y + i, x + span - 1 - i, y + span - 1 - i])
    return boxes


@trace
def apply_finder_style(image: Image.Image, geometry: RasterGeometry, corner_style: CornerStyle) -> Image.Image:
    """Clear each finder region and redraw it as ring / gap / core.

    Proportions always follow the standard 1:1:3:1:1 finder ratio, so the
    markers stay detectable whatever shape the data modules were given.
    """
    ms = geometry.module_size
    draw = ImageDraw.Draw(image)

    for row, col in geometry.finder_origins():
        x, y, _, _ = geometry.module_box(row, col)
        ring, gap, core = _nested_boxes(x, y, ms)
        draw.rectangle(ring, fill=PAPER)

        if corner_style is CornerStyle.SQUARE:
            draw.rectangle(ring, fill=INK)
            draw.rectangle(gap, fill=PAPER)
            draw.rectangle(core, fill=INK)
        elif corner_style is CornerStyle.CIRCLE:
            draw.ellipse(ring, fill=INK)
            draw.ellipse(gap, fill=PAPER)
            draw.ellipse(core, fill=INK)
        else:
            radii = _RADII[corner_style]
            for box, color, radius in zip((ring, gap, core), (INK, PAPER, INK), radii):
                draw.rounded_rectangle(box, radius=max(1, round(radius * ms)), fill=color)

    audit("finders.styled", logger=log, corner=corner_style.value, module_px=ms)
    return image
