"""Style configuration: the closed set of style axes and the StyleConfig value object."""

from dataclasses import asdict, dataclass, fields, replace as dc_replace
from enum import Enum

from PIL import ImageColor

from qrstyle.errors import InvalidStyle
from qrstyle.generator import ECC_NAMES, ECCLevel

RGB = tuple[int, int, int]

MAX_SIZE = 4096
MAX_LOGO_SCALE = 0.4
MAX_CENTER_TEXT = 64
WHITE = (255, 255, 255)


class ModuleShape(Enum):
    SQUARE = "square"
    CIRCLE = "circle"
    ROUNDED = "rounded"
    DIAMOND = "diamond"


class CornerStyle(Enum):
    SQUARE = "square"
    ROUNDED = "rounded"
    CIRCLE = "circle"
    EXTRA_ROUNDED = "extra-rounded"


class FrameStyle(Enum):
    NONE = "none"
    SIMPLE = "simple"
    SCAN_ME = "scan-me"
    SCAN_ME_BLACK = "scan-me-black"
    ARROW = "arrow"
    GRADIENT = "gradient"
    SOCIAL = "social"
    MINIMAL = "minimal"

    @property
    def uses_quiet_zone(self) -> bool:
        """Frames drawn inside the margin rather than in an appended band."""
        return self in (FrameStyle.SIMPLE, FrameStyle.MINIMAL)

    @property
    def adds_band(self) -> bool:
        return self not in (FrameStyle.NONE, FrameStyle.SIMPLE, FrameStyle.MINIMAL)


class ColorMode(Enum):
    SOLID = "solid"
    DUAL = "dual"
    GRADIENT = "gradient"


class GradientType(Enum):
    LINEAR = "linear"
    RADIAL = "radial"


class GradientDirection(Enum):
    TO_RIGHT = "to-right"
    TO_BOTTOM = "to-bottom"
    TO_TOP_RIGHT = "to-top-right"
    TO_BOTTOM_RIGHT = "to-bottom-right"


def parse_color(value, field: str = "color") -> RGB:
    """Parse '#RGB', '#RRGGBB', a CSS colour name or an RGB(A) tuple into an RGB tuple."""
    if isinstance(value, (tuple, list)):
        if len(value) not in (3, 4) or not all(isinstance(c, int) and 0 <= c <= 255 for c in value):
            raise InvalidStyle(field, f"expected 3 channel values in 0-255, got {value!r}")
        return tuple(value[:3])
    if not isinstance(value, str):
        raise InvalidStyle(field, f"unsupported colour value {value!r}")
    try:
        return ImageColor.getrgb(value.strip())[:3]
    except ValueError as exc:
        raise InvalidStyle(field, f"unknown colour {value!r}") from exc


def to_hex(color: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)


def _coerce_enum(enum_cls, value, field: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise InvalidStyle(field, f"unknown value {value!r} (expected one of: {allowed})") from None


def _coerce_ecc(value) -> ECCLevel:
    if isinstance(value, ECCLevel):
        return value
    try:
        return ECC_NAMES[str(value).upper()]
    except KeyError:
        raise InvalidStyle("ecc", f"unknown error-correction level {value!r} (expected L/M/Q/H)") from None


_ENUM_FIELDS = {
    "shape": ModuleShape,
    "corner_style": CornerStyle,
    "frame_style": FrameStyle,
    "color_mode": ColorMode,
    "gradient_type": GradientType,
    "gradient_direction": GradientDirection,
}

_COLOR_FIELDS = ("foreground", "background", "secondary", "center_text_color", "center_text_background")

# Keys of the dashboard's customisation object
_CAMEL_KEYS = {
    "size": "size",
    "margin": "margin",
    "errorCorrectionLevel": "ecc",
    "pattern": "shape",
    "cornerStyle": "corner_style",
    "frameStyle": "frame_style",
    "colorMode": "color_mode",
    "foregroundColor": "foreground",
    "backgroundColor": "background",
    "secondaryColor": "secondary",
    "gradientDirection": "gradient_direction",
    "logo": "logo",
    "logoScale": "logo_scale",
    "centerText": "center_text",
    "centerTextSize": "center_text_size",
    "centerTextFontFamily": "center_text_font",
    "centerTextBold": "center_text_bold",
    "centerTextColor": "center_text_color",
    "centerTextBackgroundColor": "center_text_background",
    "frameText": "frame_text",
}


@dataclass(frozen=True)
class StyleConfig:
    """Everything that decides how a payload is drawn.

    Only ``size``, ``margin`` and ``ecc`` (with the payload) affect the base
    raster; every other field is cosmetic and is applied on a private copy.
    String values for enum and colour fields are coerced on construction, and
    the whole config is validated before any pixel work happens.
    """

    size: int = 300
    margin: int = 4
    ecc: ECCLevel = ECCLevel.M
    shape: ModuleShape = ModuleShape.SQUARE
    corner_style: CornerStyle = CornerStyle.SQUARE
    frame_style: FrameStyle = FrameStyle.NONE
    color_mode: ColorMode = ColorMode.SOLID
    foreground: RGB = (0, 0, 0)
    background: RGB = (255, 255, 255)
    secondary: RGB = (0x33, 0x33, 0x33)
    gradient_type: GradientType = GradientType.LINEAR
    gradient_direction: GradientDirection = GradientDirection.TO_RIGHT
    logo: str | bytes | None = None
    logo_scale: float = 0.2
    center_text: str = ""
    center_text_size: int = 16
    center_text_font: str = "Arial"
    center_text_bold: bool = True
    center_text_color: RGB = (0, 0, 0)
    center_text_background: RGB = (255, 255, 255)
    frame_text: str = "SCAN ME"

    def __post_init__(self):
        object.__setattr__(self, "ecc", _coerce_ecc(self.ecc))
        for name, enum_cls in _ENUM_FIELDS.items():
            object.__setattr__(self, name, _coerce_enum(enum_cls, getattr(self, name), name))
        for name in _COLOR_FIELDS:
            object.__setattr__(self, name, parse_color(getattr(self, name), name))
        if self.logo is not None and not isinstance(self.logo, (str, bytes)):
            raise InvalidStyle("logo", f"expected a path, URL, data URI or bytes, got {type(self.logo).__name__}")
        if isinstance(self.logo, str) and not self.logo.strip():
            object.__setattr__(self, "logo", None)
        if self.center_text is not None and not isinstance(self.center_text, str):
            raise InvalidStyle("center_text", f"must be a string, got {type(self.center_text).__name__}")
        object.__setattr__(self, "center_text", (self.center_text or "").strip())
        self.validate()

    def validate(self) -> None:
        """Raise InvalidStyle for out-of-range or contradictory settings."""
        if isinstance(self.size, bool) or not isinstance(self.size, int) or not 0 < self.size <= MAX_SIZE:
            raise InvalidStyle("size", f"must be an integer in 1..{MAX_SIZE}, got {self.size!r}")
        if isinstance(self.margin, bool) or not isinstance(self.margin, int) or self.margin < 0:
            raise InvalidStyle("margin", f"must be a non-negative integer, got {self.margin!r}")
        if self.margin == 0 and self.frame_style.uses_quiet_zone:
            raise InvalidStyle("margin", f"frame '{self.frame_style.value}' is drawn in the quiet zone and needs margin >= 1")
        if isinstance(self.logo_scale, bool) or not isinstance(self.logo_scale, (int, float)):
            raise InvalidStyle("logo_scale", f"must be a number, got {self.logo_scale!r}")
        if not 0 < self.logo_scale <= MAX_LOGO_SCALE:
            raise InvalidStyle("logo_scale", f"must be in (0, {MAX_LOGO_SCALE}], got {self.logo_scale!r}")
        if (isinstance(self.center_text_size, bool) or not isinstance(self.center_text_size, int)
                or self.center_text_size <= 0):
            raise InvalidStyle("center_text_size", f"must be a positive integer, got {self.center_text_size!r}")
        if len(self.center_text) > MAX_CENTER_TEXT:
            raise InvalidStyle("center_text", f"at most {MAX_CENTER_TEXT} characters")
        if not isinstance(self.center_text_font, str) or not self.center_text_font.strip():
            raise InvalidStyle("center_text_font", f"must be a font family name or path, got {self.center_text_font!r}")
        if not isinstance(self.center_text_bold, bool):
            raise InvalidStyle("center_text_bold", f"must be true or false, got {self.center_text_bold!r}")
        if not isinstance(self.frame_text, str):
            raise InvalidStyle("frame_text", f"must be a string, got {type(self.frame_text).__name__}")
        if self.foreground == self.background:
            raise InvalidStyle("foreground", "must differ from the background colour")
        if self.color_mode is ColorMode.SOLID and self.background != WHITE:
            raise InvalidStyle("background", "solid mode leaves the paper white; use dual or gradient for a custom background")
        if self.color_mode is ColorMode.GRADIENT and self.secondary == self.background:
            raise InvalidStyle("secondary", "gradient end colour must differ from the background colour")

    def cache_key(self, payload: str) -> tuple[str, int, int, str]:
        return (payload, self.size, self.margin, self.ecc.name)

    def replace(self, **changes) -> "StyleConfig":
        return dc_replace(self, **changes)

    @classmethod
    def from_dict(cls, data: dict) -> "StyleConfig":
        """Build a StyleConfig from snake_case keys or the dashboard's camelCase keys.

        ``gradientType`` of ``linear``/``radial`` switches the colour mode to
        gradient, with ``gradientStartColor``/``gradientEndColor`` as the two
        stops. Without an explicit colour mode, a non-white background selects
        dual mode, since the dashboard always paints both colours. Unknown keys
        are ignored.
        """
        known = {f.name for f in fields(cls)}
        kwargs = {}
        for key, value in data.items():
            if key in known:
                kwargs[key] = value
            elif key in _CAMEL_KEYS:
                kwargs[_CAMEL_KEYS[key]] = value

        gradient = data.get("gradientType")
        if gradient is not None and str(gradient).lower() != "none":
            kwargs["color_mode"] = ColorMode.GRADIENT
            kwargs["gradient_type"] = gradient
            if data.get("gradientStartColor"):
                kwargs["foreground"] = data["gradientStartColor"]
            if data.get("gradientEndColor"):
                kwargs["secondary"] = data["gradientEndColor"]
        elif "color_mode" not in kwargs and "background" in kwargs:
            if parse_color(kwargs["background"], "background") != WHITE:
                kwargs["color_mode"] = ColorMode.DUAL

        return cls(**kwargs)

    def to_dict(self) -> dict:
        """Plain, JSON-friendly snapshot (enum values and hex colours)."""
        out = asdict(self)
        out["ecc"] = self.ecc.name
        for name in _ENUM_FIELDS:
            out[name] = getattr(self, name).value
        for name in _COLOR_FIELDS:
            out[name] = to_hex(getattr(self, name))
        if isinstance(self.logo, bytes):
            out["logo"] = f"<{len(self.logo)} bytes>"
        return out
