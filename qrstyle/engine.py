"""Render engine: runs the styling pipeline over a cached base raster.

One engine is built per process (or per session) and shared by every caller;
it owns the grid cache and nothing else. Each render works on its own copy of
the base raster, so concurrent renders never touch the same pixels.

Pipeline order: module shape, finder style, colours, logo, centre text, frame.
Later steps draw over earlier ones.
"""

import asyncio
from dataclasses import dataclass, field

from PIL import Image

from qrstyle.assets import DEFAULT_TIMEOUT, load_logo, load_logo_async
from qrstyle.cache import DEFAULT_CAPACITY, GridCache
from qrstyle.colors import MIN_CONTRAST, apply_colors, check_contrast
from qrstyle.errors import InvalidStyle, LoadError, QRStyleError, RenderStepError, RenderWarning
from qrstyle.finders import apply_finder_style
from qrstyle.frames import apply_frame
from qrstyle.generator import ModuleGrid, RasterGeometry
from qrstyle.logging import audit, get_logger, trace
from qrstyle.overlay import draw_center_text, embed_logo, is_scannable, obscured_fraction
from qrstyle.shapes import apply_module_shape
from qrstyle.style import ColorMode, CornerStyle, ModuleShape, StyleConfig
from qrstyle.verify import scan

log = get_logger("engine")


@dataclass
class RenderResult:
    """A finished render: the image plus what the caller should know about it."""

    image: Image.Image
    grid: ModuleGrid
    geometry: RasterGeometry
    warnings: list[RenderWarning] = field(default_factory=list)
    cache_hit: bool = False

    @property
    def ok(self) -> bool:
        """False when the image may not scan and the caller should warn the user."""
        return not ({RenderWarning.LOW_SCANNABILITY, RenderWarning.SCAN_FAILED} & set(self.warnings))


def _run_step(step: str, fn, *args, **kwargs):
    try:
        return fn(*args, **kwargs)
    except QRStyleError:
        raise
    except Exception as exc:
        raise RenderStepError(step, exc) from exc


class RenderEngine:
    """Turns (payload, StyleConfig) into a styled RGBA image.

    Args:
        cache_capacity: Number of base rasters kept in the LRU cache.
        logo_timeout: Seconds allowed for fetching a logo.
        verify_scan: Decode every result and flag the ones that fail.
        cache: Share an existing GridCache instead of creating one.
    """

    def __init__(self, cache_capacity: int = DEFAULT_CAPACITY, logo_timeout: float = DEFAULT_TIMEOUT,
                 verify_scan: bool = False, cache: GridCache | None = None):
        self.cache = cache if cache is not None else GridCache(cache_capacity)
        self.logo_timeout = logo_timeout
        self.verify_scan = verify_scan

    @trace
    def render(self, payload: str, style: StyleConfig, logo_image: Image.Image | None = None) -> RenderResult:
        """Render synchronously. A ``style.logo`` reference is loaded inline.

        Raises:
            InvalidStyle: *style* is not a valid StyleConfig.
            EncodingError: the payload does not fit at the requested size/ECC.
            RenderStepError: a styling step failed; no image is returned.
        """
        self._check_style(style)
        warnings: list[RenderWarning] = []
        logo = logo_image
        if logo is None and style.logo is not None:
            try:
                logo = load_logo(style.logo, self.logo_timeout)
            except LoadError as exc:
                self._logo_unavailable(exc, warnings)
        return self._render(payload, style, logo, warnings)

    async def render_async(self, payload: str, style: StyleConfig,
                           logo_image: Image.Image | None = None) -> RenderResult:
        """Await the logo (if any), then run the pipeline in a worker thread."""
        self._check_style(style)
        warnings: list[RenderWarning] = []
        logo = logo_image
        if logo is None and style.logo is not None:
            try:
                logo = await load_logo_async(style.logo, self.logo_timeout)
            except LoadError as exc:
                self._logo_unavailable(exc, warnings)
        return await asyncio.to_thread(self._render, payload, style, logo, warnings)

    @staticmethod
    def _check_style(style) -> None:
        if not isinstance(style, StyleConfig):
            raise InvalidStyle("style", f"expected StyleConfig, got {type(style).__name__}")
        style.validate()

    @staticmethod
    def _logo_unavailable(exc: LoadError, warnings: list[RenderWarning]) -> None:
        log.warning("Logo unavailable, rendering without it: %s", exc)
        audit("logo.unavailable", logger=log, error=str(exc))
        warnings.append(RenderWarning.LOGO_UNAVAILABLE)

    def _render(self, payload: str, style: StyleConfig, logo: Image.Image | None,
                warnings: list[RenderWarning]) -> RenderResult:
        base, cache_hit = _run_step("grid_cache", self.cache.fetch, payload, style.size, style.margin, style.ecc)
        geometry = base.geometry
        image = base.image

        image = _run_step("module_shape", apply_module_shape, image, geometry, style.shape)
        if style.shape is not ModuleShape.SQUARE or style.corner_style is not CornerStyle.SQUARE:
            image = _run_step("finder_style", apply_finder_style, image, geometry, style.corner_style)
        image = _run_step("colors", apply_colors, image, style)
        self._check_contrast(style, warnings)

        obscured = []
        logo_patch = None
        if logo is not None:
            logo_patch = _run_step("logo", embed_logo, image, geometry, logo, style)
            obscured.append(logo_patch)
        if style.center_text:
            text_box = _run_step("center_text", draw_center_text, image, geometry, style, avoid=logo_patch)
            obscured.append(text_box)
            if text_box[0] < 0 or text_box[2] > geometry.width:
                log.warning("Caption %r is %dpx wide and does not fit the %dpx image",
                            style.center_text, text_box[2] - text_box[0], geometry.width)
                warnings.append(RenderWarning.TEXT_CLIPPED)
            if logo_patch is not None:
                warnings.append(RenderWarning.TEXT_OFFSET)
        if obscured and not is_scannable(geometry, style.ecc, obscured):
            log.warning("Overlays cover %.1f%% of the code, more than ECC level %s tolerates",
                        obscured_fraction(geometry, obscured) * 100, style.ecc.name)
            warnings.append(RenderWarning.LOW_SCANNABILITY)

        image = _run_step("frame", apply_frame, image, geometry, style)

        if self.verify_scan and not scan(image, expected_data=payload).success:
            warnings.append(RenderWarning.SCAN_FAILED)

        audit("render.done", logger=log,
              payload=payload[:80], size=f"{image.width}x{image.height}", cache_hit=cache_hit,
              shape=style.shape.value, corner=style.corner_style.value,
              colors=style.color_mode.value, frame=style.frame_style.value,
              warnings=[w.value for w in warnings])
        return RenderResult(image=image, grid=base.grid, geometry=geometry,
                            warnings=warnings, cache_hit=cache_hit)

    @staticmethod
    def _check_contrast(style: StyleConfig, warnings: list[RenderWarning]) -> None:
        inks = [style.foreground]
        if style.color_mode is ColorMode.GRADIENT:
            inks.append(style.secondary)
        ratio = min(check_contrast(ink, style.background) for ink in inks)
        if ratio < MIN_CONTRAST:
            log.warning("Contrast ratio %.1f:1 is below %.1f:1, scannability at risk", ratio, MIN_CONTRAST)
            warnings.append(RenderWarning.LOW_CONTRAST)
