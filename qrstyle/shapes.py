"""Module Shape Renderer: redraw data modules as squares, circles, rounded squares or diamonds."""

import numpy as np
from PIL import Image, ImageDraw

from qrstyle.generator import FINDER_MODULES, INK, PAPER, RasterGeometry
from qrstyle.logging import audit, get_logger, trace
from qrstyle.style import ModuleShape

log = get_logger("shapes")

# A tile is ink when its mean luminance is below half of full scale.
INK_THRESHOLD = 128

# Below this many pixels per module a shape cannot be told apart from a square
MIN_SHAPE_PX = 3


def ink_mask(image: Image.Image) -> np.ndarray:
    """Per-pixel ink mask: luminance below the threshold."""
    return np.asarray(image.convert("L")) < INK_THRESHOLD


def classify_modules(image: Image.Image, geometry: RasterGeometry) -> np.ndarray:
    """Classify every grid tile as ink (True) or paper by its mean luminance."""
    n, ms = geometry.grid_size, geometry.module_size
    x0, y0, x1, y1 = geometry.grid_box()
    luma = np.asarray(image.convert("L"), dtype=np.float32)[y0:y1, x0:x1]
    tiles = luma.reshape(n, ms, n, ms).mean(axis=(1, 3))
    return tiles < INK_THRESHOLD


def _inset(module_size: int) -> int:
    if module_size < 4:
        return 0
    return max(1, module_size // 10)


def _draw_circle(draw, box, inset, module_size):
    x0, y0, x1, y1 = box
    draw.ellipse([x0 + inset, y0 + inset, x1 - 1 - inset, y1 - 1 - inset], fill=INK)


def _draw_rounded(draw, box, inset, module_size):
    x0, y0, x1, y1 = box
    draw.rounded_rectangle(
        [x0 + inset, y0 + inset, x1 - 1 - inset, y1 - 1 - inset],
        radius=max(1, module_size // 4), fill=INK,
    )


def _draw_diamond(draw, box, inset, module_size):
    x0, y0, x1, y1 = box
    cx = x0 + (module_size - 1) / 2
    cy = y0 + (module_size - 1) / 2
    draw.polygon(
        [(cx, y0 + inset), (x1 - 1 - inset, cy), (cx, y1 - 1 - inset), (x0 + inset, cy)],
        fill=INK,
    )


_SHAPE_DRAWERS = {
    ModuleShape.CIRCLE: _draw_circle,
    ModuleShape.ROUNDED: _draw_rounded,
    ModuleShape.DIAMOND: _draw_diamond,
}


def _finder_crops(image: Image.Image, geometry: RasterGeometry) -> list[tuple[tuple[int, int], Image.Image]]:
    span = FINDER_MODULES * geometry.module_size
    crops = []
    for row, col in geometry.finder_origins():
        x0, y0, _, _ = geometry.module_box(row, col)
        crops.append(((x0, y0), image.crop((x0, y0, x0 + span, y0 + span))))
    return crops


@trace
def apply_module_shape(image: Image.Image, geometry: RasterGeometry, shape: ModuleShape) -> Image.Image:
    """Redraw every data module of *image* in place using *shape*.

    ``square`` is the identity. Finder regions are kept as they are; the
    finder styler owns them.
    """
    if shape is ModuleShape.SQUARE:
        return image
    if geometry.module_size < MIN_SHAPE_PX:
        log.debug("module size %dpx too small for %s modules, keeping squares", geometry.module_size, shape.value)
        return image

    drawer = _SHAPE_DRAWERS[shape]
    modules = classify_modules(image, geometry)
    finders = _finder_crops(image, geometry)

    draw = ImageDraw.Draw(image)
    x0, y0, x1, y1 = geometry.grid_box()
    draw.rectangle([x0, y0, x1 - 1, y1 - 1], fill=PAPER)

    inset = _inset(geometry.module_size)
    drawn = 0
    for row, col in zip(*np.nonzero(modules)):
        row, col = int(row), int(col)
        if geometry.in_finder(row, col):
            continue
        drawer(draw, geometry.module_box(row, col), inset, geometry.module_size)
        drawn += 1

    for origin, crop in finders:
        image.paste(crop, origin)

    audit("shape.applied", logger=log, shape=shape.value, modules=drawn,
          module_px=geometry.module_size, inset=inset)
    return image
