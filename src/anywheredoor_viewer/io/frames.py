"""Conversion of decoded video frames into texture-ready arrays."""
from __future__ import annotations

from typing import Optional

import cv2
import numpy as np
from PyQt6.QtGui import QImage


def bgra_to_rgb(buffer: np.ndarray) -> np.ndarray:
    """Convert a (H, W, 4) BGRA byte array to contiguous RGB."""
    if buffer.dtype != np.uint8 or buffer.ndim != 3 or buffer.shape[2] != 4:
        raise ValueError("Expected a (H, W, 4) uint8 BGRA array")
    return np.ascontiguousarray(cv2.cvtColor(buffer, cv2.COLOR_BGRA2RGB))


def qimage_to_rgb(image: QImage) -> Optional[np.ndarray]:
    """Copy a QImage into an RGB uint8 array, or None for a null image.

    Frames are normalised to ARGB32 first, whose in-memory byte order on
    little-endian hosts is B, G, R, A.
    """
    if image.isNull():
        return None
    if image.format() != QImage.Format.Format_ARGB32:
        image = image.convertToFormat(QImage.Format.Format_ARGB32)
    width = image.width()
    height = image.height()
    stride = image.bytesPerLine()
    raw = np.frombuffer(image.constBits().asstring(stride * height), dtype=np.uint8)
    # Rows may be padded beyond width * 4 bytes.
    buffer = raw.reshape(height, stride)[:, : width * 4].reshape(height, width, 4)
    return bgra_to_rgb(buffer)
