"""Color Compositor: recolor ink (and optionally paper) without changing which pixels are ink.

Gradients are interpolated per channel in sRGB space, the same way browser
canvas gradients are, so a midpoint of #3b82f6 -> #1e40af is the arithmetic
mean of the two hex values.
"""

import numpy as np
from PIL import Image

from qrstyle.logging import audit, get_logger, trace
from qrstyle.shapes import ink_mask
from qrstyle.style import ColorMode, GradientDirection, GradientType, StyleConfig

log = get_logger("colors")

MIN_CONTRAST = 4.5

# Start and end points of each linear direction, as fractions of (width, height)
_LINEAR_AXES = {
    GradientDirection.TO_RIGHT: ((0.0, 0.0), (1.0, 0.0)),
    GradientDirection.TO_BOTTOM: ((0.0, 0.0), (0.0, 1.0)),
    GradientDirection.TO_TOP_RIGHT: ((0.0, 1.0), (1.0, 0.0)),
    GradientDirection.TO_BOTTOM_RIGHT: ((0.0, 0.0), (1.0, 1.0)),
}


def _linearize(channel: int) -> float:
    """Convert sRGB channel (0-255) to linear light value."""
    c = channel / 255.0
    return c / 12.92 if c <= 0.03928 else ((c + 0.055) / 1.055) ** 2.4


def _luminance(rgb: tuple[int, int, int]) -> float:
    """Relative luminance per WCAG 2.0."""
    r, g, b = [_linearize(ch) for ch in rgb]
    return 0.2126 * r + 0.7152 * g + 0.0722 * b


def check_contrast(fg: tuple[int, ...], bg: tuple[int, ...]) -> float:
    """WCAG contrast ratio between two RGB colours (1.0 - 21.0)."""
    l1 = _luminance(fg[:3])
    l2 = _luminance(bg[:3])
    if l1 < l2:
        l1, l2 = l2, l1
    return (l1 + 0.05) / (l2 + 0.05)


def gradient_position(width: int, height: int, gradient_type: GradientType,
                      direction: GradientDirection) -> np.ndarray:
    """Gradient parameter t in [0, 1] for every pixel centre, shape (height, width)."""
    ys, xs = np.mgrid[0:height, 0:width].astype(np.float64)
    xs += 0.5
    ys += 0.5

    if gradient_type is GradientType.RADIAL:
        radius = min(width, height) / 2
        t = np.hypot(xs - width / 2, ys - height / 2) / radius
    else:
        (sx, sy), (ex, ey) = _LINEAR_AXES[direction]
        x0, y0 = sx * width, sy * height
        dx, dy = ex * width - x0, ey * height - y0
        t = ((xs - x0) * dx + (ys - y0) * dy) / (dx * dx + dy * dy)
    return np.clip(t, 0.0, 1.0)


def gradient_field(width: int, height: int, start: tuple[int, int, int], end: tuple[int, int, int],
                   gradient_type: GradientType = GradientType.LINEAR,
                   direction: GradientDirection = GradientDirection.TO_RIGHT) -> np.ndarray:
    """RGB gradient covering a width x height area, shape (height, width, 3), uint8."""
    t = gradient_position(width, height, gradient_type, direction)[..., None]
    a = np.array(start, dtype=np.float64)
    b = np.array(end, dtype=np.float64)
    return np.rint(a + (b - a) * t).astype(np.uint8)


@trace
def apply_colors(image: Image.Image, style: StyleConfig) -> Image.Image:
    """Recolor *image* according to ``style.color_mode``.

    - solid: ink -> foreground; paper untouched.
    - dual: ink -> foreground; paper -> background.
    - gradient: paper -> background, then the gradient is written through the
      ink mask only.

    The ink mask is taken once, before any pixel is written.
    """
    mask = ink_mask(image)
    pixels = np.array(image.convert("RGBA"))
    rgb = pixels[..., :3]

    if style.color_mode is ColorMode.SOLID:
        rgb[mask] = style.foreground
    elif style.color_mode is ColorMode.DUAL:
        rgb[mask] = style.foreground
        rgb[~mask] = style.background
    elif style.color_mode is ColorMode.GRADIENT:
        rgb[~mask] = style.background
        field = gradient_field(image.width, image.height, style.foreground, style.secondary,
                               style.gradient_type, style.gradient_direction)
        rgb[mask] = field[mask]
    else:
        raise ValueError(f"unhandled color mode {style.color_mode!r}")

    audit("colors.applied", logger=log,
          mode=style.color_mode.value, ink_px=int(mask.sum()),
          gradient=style.gradient_type.value if style.color_mode is ColorMode.GRADIENT else None)
    return Image.fromarray(pixels)
