"""Application bootstrap utilities."""
from __future__ import annotations

import argparse
import sys
from typing import Optional

from loguru import logger
from PyQt6.QtCore import Qt
from PyQt6.QtGui import QGuiApplication
from PyQt6.QtWidgets import QApplication

from .config import AppConfig
from .logging import configure_logging
from .ui.main_window import MainWindow
from .ui.theme import apply_dark_theme


def _configure_high_dpi() -> None:
    """Configure high-DPI handling before QApplication instantiation."""
    QGuiApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="anywheredoor-viewer",
        description="Look around inside equirectangular 360° videos.",
    )
    parser.add_argument("url", nargs="?", help="video file path or URL to open")
    parser.add_argument("--video-id", help="catalogue video to fetch and play")
    parser.add_argument("--autoplay", action="store_true", help="start playback muted on load")
    parser.add_argument("--no-controls", action="store_true", help="hide the transport bar")
    parser.add_argument("--api-url", help="catalogue base URL (overrides ANYWHEREDOOR_API_URL)")
    parser.add_argument("--log-level", help="loguru level, e.g. DEBUG")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Launch the AnyWhereDoor desktop viewer."""
    argv = list(sys.argv if argv is None else argv)
    args, qt_args = build_parser().parse_known_args(argv[1:])

    try:
        config = AppConfig.from_env().with_overrides(api_url=args.api_url, log_level=args.log_level)
    except ValueError as exc:
        print(f"anywheredoor-viewer: {exc}", file=sys.stderr)
        return 2
    configure_logging(config.log_level)

    _configure_high_dpi()
    app = QApplication(argv[:1] + qt_args)
    apply_dark_theme(app)

    window = MainWindow(config)
    window.show()
    if args.url:
        window.open_url(args.url, autoplay=args.autoplay, controls=not args.no_controls)
    elif args.video_id:
        window.open_catalog_video(args.video_id, autoplay=args.autoplay, controls=not args.no_controls)
    logger.debug("Entering Qt event loop")

    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
