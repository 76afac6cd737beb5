"""Runtime configuration for the viewer and the catalogue client."""
from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, replace
from typing import Mapping, Optional

DEFAULT_API_URL = "http://localhost:3001"


@dataclass(slots=True, frozen=True)
class ViewerSettings:
    """Constants governing camera, sphere and input behaviour."""

    sensitivity: float = 0.005  # radians per pixel of drag
    fov_deg: float = 75.0
    min_fov_deg: float = 30.0
    max_fov_deg: float = 100.0
    near: float = 0.1
    far: float = 1000.0
    sphere_radius: float = 500.0
    width_segments: int = 60
    height_segments: int = 40
    camera_offset: float = 0.1  # along +Z, keeps the eye off the exact centre
    keyboard_step: float = math.radians(4.0)
    clear_color: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 1.0)

    def __post_init__(self) -> None:
        if self.far <= self.sphere_radius:
            raise ValueError("Far plane must lie beyond the sphere radius")
        if self.sensitivity <= 0.0:
            raise ValueError("Sensitivity must be positive")


@dataclass(slots=True)
class AppConfig:
    """Process-level configuration, resolved from the environment then CLI flags."""

    api_url: str = DEFAULT_API_URL
    request_timeout: float = 10.0
    log_level: str = "INFO"
    viewer: ViewerSettings = field(default_factory=ViewerSettings)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        config = cls()
        if env.get("ANYWHEREDOOR_API_URL"):
            config.api_url = env["ANYWHEREDOOR_API_URL"].rstrip("/")
        if env.get("ANYWHEREDOOR_TIMEOUT"):
            try:
                config.request_timeout = float(env["ANYWHEREDOOR_TIMEOUT"])
            except ValueError as exc:
                raise ValueError(
                    f"ANYWHEREDOOR_TIMEOUT must be a number, got {env['ANYWHEREDOOR_TIMEOUT']!r}"
                ) from exc
        if env.get("ANYWHEREDOOR_LOG_LEVEL"):
            config.log_level = env["ANYWHEREDOOR_LOG_LEVEL"].upper()
        return config

    def with_overrides(
        self,
        api_url: Optional[str] = None,
        log_level: Optional[str] = None,
    ) -> "AppConfig":
        return replace(
            self,
            api_url=(api_url.rstrip("/") if api_url else self.api_url),
            log_level=(log_level.upper() if log_level else self.log_level),
        )
