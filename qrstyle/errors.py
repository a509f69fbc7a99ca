"""Error taxonomy for the styling pipeline."""

from enum import Enum


class QRStyleError(Exception):
    """Base class for every error raised by qrstyle."""


class EncodingError(QRStyleError):
    """The payload could not be turned into a module grid at the requested size."""

    PAYLOAD_TOO_LARGE = "payload_too_large"
    EMPTY_PAYLOAD = "empty_payload"

    def __init__(self, reason: str, message: str, payload_length: int = 0, ecc: str | None = None):
        super().__init__(message)
        self.reason = reason
        self.payload_length = payload_length
        self.ecc = ecc

    @property
    def payload_too_large(self) -> bool:
        return self.reason == self.PAYLOAD_TOO_LARGE


class InvalidStyle(QRStyleError):
    """A StyleConfig field is out of range or inconsistent with another."""

    def __init__(self, field: str, message: str):
        super().__init__(f"{field}: {message}")
        self.field = field


class LoadError(QRStyleError):
    """A logo asset could not be fetched or decoded."""

    def __init__(self, source: object, message: str):
        super().__init__(message)
        self.source = source


class RenderStepError(QRStyleError):
    """An unexpected failure inside one named pipeline step."""

    def __init__(self, step: str, cause: BaseException):
        super().__init__(f"{step} failed: {cause}")
        self.step = step
        self.cause = cause


class RenderWarning(Enum):
    """Non-fatal conditions reported alongside a rendered image."""

    LOW_SCANNABILITY = "low_scannability"
    LOGO_UNAVAILABLE = "logo_unavailable"
    LOW_CONTRAST = "low_contrast"
    TEXT_OFFSET = "text_offset"
    TEXT_CLIPPED = "text_clipped"
    SCAN_FAILED = "scan_failed"
