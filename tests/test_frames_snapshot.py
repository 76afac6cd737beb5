import math

import cv2
import numpy as np
import pytest
from PyQt6.QtGui import QColor, QImage

from anywheredoor_viewer.catalog import Video
from anywheredoor_viewer.io.frames import bgra_to_rgb, qimage_to_rgb
from anywheredoor_viewer.io.snapshot import save_snapshot
from anywheredoor_viewer.ui.catalog_dialog import describe_video
from anywheredoor_viewer.ui.player_widget import format_time


def test_bgra_to_rgb_reorders_channels():
    buffer = np.zeros((2, 3, 4), dtype=np.uint8)
    buffer[..., 0] = 10  # blue
    buffer[..., 2] = 200  # red
    rgb = bgra_to_rgb(buffer)
    assert rgb.shape == (2, 3, 3)
    assert tuple(rgb[0, 0]) == (200, 0, 10)
    with pytest.raises(ValueError):
        bgra_to_rgb(np.zeros((2, 3, 3), dtype=np.uint8))


def test_qimage_to_rgb_strips_row_padding(qapp):
    # Width 3 in RGB888 pads rows to a 4-byte boundary before conversion.
    image = QImage(3, 2, QImage.Format.Format_RGB888)
    image.fill(QColor(12, 34, 56))
    rgb = qimage_to_rgb(image)
    assert rgb.shape == (2, 3, 3)
    assert (rgb == np.array([12, 34, 56], dtype=np.uint8)).all()
    assert qimage_to_rgb(QImage()) is None


def test_save_snapshot_writes_png(tmp_path):
    frame = np.zeros((8, 16, 3), dtype=np.uint8)
    frame[..., 0] = 255
    written = save_snapshot(frame, tmp_path / "shots" / "frame")
    assert written.suffix == ".png"
    loaded = cv2.imread(str(written))
    # OpenCV reads BGR, so the red channel comes back last.
    assert tuple(loaded[0, 0]) == (0, 0, 255)


def test_save_snapshot_rejects_bad_frames(tmp_path):
    with pytest.raises(ValueError):
        save_snapshot(np.zeros((4, 4), dtype=np.uint8), tmp_path / "x.png")


def test_format_time():
    assert format_time(0) == "0:00"
    assert format_time(65.9) == "1:05"
    assert format_time(float("nan")) == "0:00"
    assert format_time(-4) == "0:00"
    assert format_time(math.inf) == "0:00"


def test_describe_video():
    video = Video(id="1", title="Harbour at dusk", video_url="/v.mp4", city="Lagos", duration=125.0)
    assert describe_video(video) == "Harbour at dusk · Lagos · 2:05"
    assert describe_video(Video(id="2", title="", video_url="/w.mp4")) == "(untitled)"
