"""Module grid source and base rasterizer.

Wraps the ``qrcode`` encoder to obtain the module matrix for a payload, and
draws that matrix as a plain black-on-white RGBA raster at an exact pixel
size. Everything cosmetic happens later, on copies of this raster.
"""

from dataclasses import dataclass
from enum import Enum

import numpy as np
import qrcode
import qrcode.constants
from qrcode.exceptions import DataOverflowError
from PIL import Image

from qrstyle.errors import EncodingError
from qrstyle.logging import audit, get_logger, trace

log = get_logger("generator")

INK = (0, 0, 0, 255)
PAPER = (255, 255, 255, 255)

FINDER_MODULES = 7


class ECCLevel(Enum):
    L = qrcode.constants.ERROR_CORRECT_L  # 7%
    M = qrcode.constants.ERROR_CORRECT_M  # 15%
    Q = qrcode.constants.ERROR_CORRECT_Q  # 25%
    H = qrcode.constants.ERROR_CORRECT_H  # 30%


ECC_NAMES = {"L": ECCLevel.L, "M": ECCLevel.M, "Q": ECCLevel.Q, "H": ECCLevel.H}


@dataclass(frozen=True)
class ModuleGrid:
    """Immutable N x N module matrix (True = dark) as produced by the encoder."""

    modules: tuple[tuple[bool, ...], ...]
    version: int
    ecc: ECCLevel

    @property
    def size(self) -> int:
        return len(self.modules)

    def to_array(self) -> np.ndarray:
        return np.array(self.modules, dtype=bool)


@dataclass(frozen=True)
class RasterGeometry:
    """Where the module grid sits inside a raster.

    ``offset`` is the pixel distance from the top/left edge to the first grid
    module: the quiet zone plus half of the slack left over when ``width`` is
    not an exact multiple of the module count.
    """

    width: int
    height: int
    grid_size: int
    module_size: int
    margin: int
    offset: int

    @property
    def quiet_zone_px(self) -> int:
        return self.offset

    @property
    def grid_px(self) -> int:
        return self.grid_size * self.module_size

    def grid_box(self) -> tuple[int, int, int, int]:
        """Pixel box (x0, y0, x1, y1) of the whole grid, end-exclusive."""
        end = self.offset + self.grid_px
        return (self.offset, self.offset, end, end)

    def module_box(self, row: int, col: int) -> tuple[int, int, int, int]:
        """Pixel box (x0, y0, x1, y1) of one module, end-exclusive."""
        x0 = self.offset + col * self.module_size
        y0 = self.offset + row * self.module_size
        return (x0, y0, x0 + self.module_size, y0 + self.module_size)

    def finder_origins(self) -> list[tuple[int, int]]:
        """(row, col) of the top-left module of each finder: TL, TR, BL."""
        far = self.grid_size - FINDER_MODULES
        return [(0, 0), (0, far), (far, 0)]

    def in_finder(self, row: int, col: int) -> bool:
        far = self.grid_size - FINDER_MODULES
        top = row < FINDER_MODULES
        left = col < FINDER_MODULES
        return (top and left) or (top and col >= far) or (left and row >= far)


@dataclass(frozen=True)
class BaseRaster:
    """Cached rendering of one (payload, size, margin, ecc) key. Never mutated."""

    image: Image.Image
    grid: ModuleGrid
    geometry: RasterGeometry

    def copy(self) -> "BaseRaster":
        return BaseRaster(self.image.copy(), self.grid, self.geometry)


@trace
def encode(data: str, ecc: ECCLevel = ECCLevel.M, version: int | None = None) -> ModuleGrid:
    """Encode *data* into a module grid.

    Args:
        data: The payload (URL, text, ...).
        ecc: Error-correction level.
        version: QR version 1-40, or None for the smallest that fits.

    Raises:
        EncodingError: empty payload, or more data than the version/ECC holds.
    """
    if not data:
        raise EncodingError(EncodingError.EMPTY_PAYLOAD, "QR payload cannot be empty.", 0, ecc.name)

    qr = qrcode.QRCode(
        version=version,
        error_correction=ecc.value,
        box_size=1,
        border=0,
    )
    qr.add_data(data)
    try:
        qr.make(fit=(version is None))
    except (DataOverflowError, ValueError) as exc:
        # qrcode 8 reports "Invalid version (was 41 ...)" from best_fit
        raise EncodingError(
            EncodingError.PAYLOAD_TOO_LARGE,
            f"Payload of {len(data)} characters does not fit a QR code at ECC level {ecc.name}.",
            len(data), ecc.name,
        ) from exc

    grid = ModuleGrid(
        modules=tuple(tuple(bool(m) for m in row) for row in qr.modules),
        version=qr.version,
        ecc=ecc,
    )
    audit("qr.encoded", logger=log,
          data=data[:80], version=grid.version, grid=f"{grid.size}x{grid.size}", ecc=ecc.name)
    return grid


def compute_geometry(grid_size: int, size: int, margin: int) -> RasterGeometry | None:
    """Fit ``grid_size`` modules plus ``margin`` on each side into ``size`` pixels.

    Returns None when fewer than one pixel per module is available.
    """
    total = grid_size + 2 * margin
    module_size = size // total
    if module_size < 1:
        return None
    slack = size - module_size * total
    return RasterGeometry(
        width=size,
        height=size,
        grid_size=grid_size,
        module_size=module_size,
        margin=margin,
        offset=margin * module_size + slack // 2,
    )


@trace
def rasterize_grid(grid: ModuleGrid, size: int, margin: int) -> BaseRaster:
    """Draw *grid* as a plain black/white ``size`` x ``size`` RGBA raster."""
    geometry = compute_geometry(grid.size, size, margin)
    if geometry is None:
        raise EncodingError(
            EncodingError.PAYLOAD_TOO_LARGE,
            f"A {grid.size}-module grid with margin {margin} needs at least "
            f"{grid.size + 2 * margin}px; {size}px requested.",
            ecc=grid.ecc.name,
        )

    ms = geometry.module_size
    dark = grid.to_array().repeat(ms, axis=0).repeat(ms, axis=1)
    pixels = np.empty((size, size, 4), dtype=np.uint8)
    pixels[...] = PAPER
    x0, y0, x1, y1 = geometry.grid_box()
    pixels[y0:y1, x0:x1][dark] = INK

    image = Image.fromarray(pixels)
    audit("raster.built", logger=log,
          size=f"{size}x{size}", module_px=geometry.module_size, offset=geometry.offset)
    return BaseRaster(image=image, grid=grid, geometry=geometry)
