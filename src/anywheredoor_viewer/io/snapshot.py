"""Export the current equirectangular video frame to disk."""
from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np
from loguru import logger


def save_snapshot(frame: np.ndarray, path: Path) -> Path:
    """Write an RGB frame with OpenCV; the format follows the file suffix."""
    if frame.dtype != np.uint8 or frame.ndim != 3 or frame.shape[2] != 3:
        raise ValueError("Snapshot frame must be a (H, W, 3) uint8 RGB image")
    path = Path(path)
    if not path.suffix:
        path = path.with_suffix(".png")
    path.parent.mkdir(parents=True, exist_ok=True)
    ok = cv2.imwrite(str(path), cv2.cvtColor(frame, cv2.COLOR_RGB2BGR))
    if not ok:
        raise OSError(f"OpenCV could not write snapshot to {path}")
    logger.info("Snapshot {}x{} written to {}", frame.shape[1], frame.shape[0], path)
    return path
