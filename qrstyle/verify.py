"""Scan verification: decode a rendered code to confirm it still scans."""

import time
from dataclasses import dataclass

import cv2
import numpy as np
from PIL import Image

from qrstyle.logging import audit, get_logger, trace

log = get_logger("verify")

# Decoders struggle with codes rendered right up to the image edge
SCAN_PADDING = 16


@dataclass
class ScanResult:
    """Result of a single scan attempt."""
    success: bool
    decoded_data: str | None = None
    decode_time_ms: float = 0.0
    decoder: str = "opencv"
    error: str | None = None


@trace
def scan(image: Image.Image, expected_data: str | None = None) -> ScanResult:
    """Decode *image* with OpenCV's QR detector.

    Args:
        image: Rendered code (any mode; flattened onto white first).
        expected_data: If given, a successful decode of different text fails.
    """
    flat = Image.new("RGB", (image.width + 2 * SCAN_PADDING, image.height + 2 * SCAN_PADDING), (255, 255, 255))
    rgba = image.convert("RGBA")
    flat.paste(rgba, (SCAN_PADDING, SCAN_PADDING), rgba)
    gray = cv2.cvtColor(np.array(flat), cv2.COLOR_RGB2GRAY)

    start = time.perf_counter()
    try:
        data, _points, _ = cv2.QRCodeDetector().detectAndDecode(gray)
    except cv2.error as e:
        elapsed = (time.perf_counter() - start) * 1000
        audit("scan.error", logger=log, error=str(e), time_ms=round(elapsed, 1))
        return ScanResult(success=False, decode_time_ms=elapsed, error=str(e))
    elapsed = (time.perf_counter() - start) * 1000

    if not data:
        result = ScanResult(success=False, decode_time_ms=elapsed, error="No QR code detected")
    elif expected_data is not None and data != expected_data:
        result = ScanResult(success=False, decoded_data=data, decode_time_ms=elapsed,
                            error=f"Data mismatch: got '{data}', expected '{expected_data}'")
    else:
        result = ScanResult(success=True, decoded_data=data, decode_time_ms=elapsed)

    audit("scan.verified", logger=log, success=result.success,
          time_ms=round(elapsed, 1), data=(data or "")[:80], error=result.error)
    return result
