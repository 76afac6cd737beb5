"""OpenGL resources that project live video onto an inward-facing sphere."""
from __future__ import annotations

from collections import Counter
from typing import Optional, Tuple

import numpy as np
from loguru import logger
from OpenGL.GL import (
    GL_BACK,
    GL_CCW,
    GL_CLAMP_TO_EDGE,
    GL_COLOR_BUFFER_BIT,
    GL_COMPILE,
    GL_CULL_FACE,
    GL_DEPTH_BUFFER_BIT,
    GL_DEPTH_TEST,
    GL_LINEAR,
    GL_MODELVIEW,
    GL_PROJECTION,
    GL_REPEAT,
    GL_RGB,
    GL_TEXTURE_2D,
    GL_TEXTURE_MAG_FILTER,
    GL_TEXTURE_MIN_FILTER,
    GL_TEXTURE_WRAP_S,
    GL_TEXTURE_WRAP_T,
    GL_TRIANGLES,
    GL_UNPACK_ALIGNMENT,
    GL_UNSIGNED_BYTE,
    glBegin,
    glBindTexture,
    glCallList,
    glClear,
    glClearColor,
    glCullFace,
    glDeleteLists,
    glDeleteTextures,
    glDisable,
    glEnable,
    glEnd,
    glEndList,
    glFrontFace,
    glGenLists,
    glGenTextures,
    glLoadMatrixf,
    glMatrixMode,
    glNewList,
    glPixelStorei,
    glTexCoord2f,
    glTexImage2D,
    glTexParameteri,
    glTexSubImage2D,
    glVertex3f,
    glViewport,
)

from ..config import ViewerSettings
from ..math.geometry import SphereMesh, build_sphere_mesh, clamp, perspective_matrix, view_matrix
from ..models.orientation import OrientationState


class SceneConstructionError(RuntimeError):
    """Raised when the GL resources for a viewer cannot be allocated."""


class ResourceLedger:
    """Counts live GL-backed resources owned by one viewer."""

    KINDS = ("geometry", "texture", "material", "renderer")

    def __init__(self) -> None:
        self._live: Counter[str] = Counter()

    def acquire(self, kind: str) -> None:
        if kind not in self.KINDS:
            raise ValueError(f"Unknown resource kind: {kind}")
        self._live[kind] += 1

    def release(self, kind: str) -> None:
        if self._live[kind] <= 0:
            raise RuntimeError(f"Releasing {kind} that was never acquired")
        self._live[kind] -= 1

    def live(self, kind: str) -> int:
        return self._live[kind]

    def snapshot(self) -> dict[str, int]:
        return {kind: self._live[kind] for kind in self.KINDS}

    @property
    def empty(self) -> bool:
        return not any(self._live.values())


class PerspectiveCamera:
    """Camera sitting just off the sphere centre; orientation comes from yaw/pitch."""

    def __init__(self, settings: ViewerSettings, aspect: float = 16.0 / 9.0) -> None:
        self.fov = settings.fov_deg
        self.aspect = aspect
        self.near = settings.near
        self.far = settings.far
        self.position: Tuple[float, float, float] = (0.0, 0.0, settings.camera_offset)
        self.yaw = 0.0
        self.pitch = 0.0
        self._min_fov = settings.min_fov_deg
        self._max_fov = settings.max_fov_deg

    def set_viewport(self, width: int, height: int) -> None:
        self.aspect = max(1, width) / max(1, height)

    def apply_orientation(self, state: OrientationState) -> None:
        self.yaw = state.yaw
        self.pitch = state.pitch

    def zoom(self, steps: float) -> float:
        """Narrow (positive steps) or widen the field of view."""
        self.fov = clamp(self.fov * (0.9 ** steps), self._min_fov, self._max_fov)
        return self.fov

    def projection_matrix(self) -> np.ndarray:
        return perspective_matrix(self.fov, self.aspect, self.near, self.far)

    def view_matrix(self) -> np.ndarray:
        return view_matrix(self.yaw, self.pitch, self.position)


class SphereGeometry:
    """Sphere mesh compiled into a display list."""

    def __init__(self, mesh: SphereMesh, ledger: ResourceLedger) -> None:
        self.mesh = mesh
        self._ledger = ledger
        list_id = int(glGenLists(1))
        if list_id == 0:
            raise SceneConstructionError("Unable to allocate a display list for the sphere")
        glNewList(list_id, GL_COMPILE)
        glBegin(GL_TRIANGLES)
        positions = mesh.positions
        uvs = mesh.uvs
        for triangle in mesh.indices:
            for index in triangle:
                u, v = uvs[index]
                x, y, z = positions[index]
                glTexCoord2f(float(u), float(v))
                glVertex3f(float(x), float(y), float(z))
        glEnd()
        glEndList()
        self._list_id: Optional[int] = list_id
        ledger.acquire("geometry")

    def draw(self) -> None:
        if self._list_id is not None:
            glCallList(self._list_id)

    def dispose(self) -> None:
        if self._list_id is None:
            return
        glDeleteLists(self._list_id, 1)
        self._list_id = None
        self._ledger.release("geometry")


class VideoTexture:
    """Texture refreshed from the most recent decoded frame at render time."""

    def __init__(self, ledger: ResourceLedger) -> None:
        self._ledger = ledger
        texture_id = int(glGenTextures(1))
        if texture_id == 0:
            raise SceneConstructionError("Unable to allocate a video texture")
        glBindTexture(GL_TEXTURE_2D, texture_id)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MIN_FILTER, GL_LINEAR)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_MAG_FILTER, GL_LINEAR)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_S, GL_REPEAT)
        glTexParameteri(GL_TEXTURE_2D, GL_TEXTURE_WRAP_T, GL_CLAMP_TO_EDGE)
        glBindTexture(GL_TEXTURE_2D, 0)
        self._texture_id: Optional[int] = texture_id
        self._pending: Optional[np.ndarray] = None
        self._size: Optional[Tuple[int, int]] = None
        ledger.acquire("texture")

    @property
    def texture_id(self) -> Optional[int]:
        return self._texture_id

    @property
    def has_content(self) -> bool:
        return self._size is not None

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        return self._size

    def push_frame(self, frame: np.ndarray) -> None:
        """Queue a frame; only the latest one is uploaded."""
        if frame.dtype != np.uint8 or frame.ndim != 3 or frame.shape[2] != 3:
            raise ValueError("Video frames must be (H, W, 3) uint8 RGB arrays")
        self._pending = frame

    def update(self) -> bool:
        """Upload the queued frame, if any. Must run with the GL context current."""
        frame = self._pending
        if frame is None or self._texture_id is None:
            return False
        self._pending = None
        height, width = frame.shape[:2]
        glBindTexture(GL_TEXTURE_2D, self._texture_id)
        glPixelStorei(GL_UNPACK_ALIGNMENT, 1)
        if self._size != (width, height):
            glTexImage2D(GL_TEXTURE_2D, 0, GL_RGB, width, height, 0, GL_RGB, GL_UNSIGNED_BYTE, frame)
            self._size = (width, height)
        else:
            glTexSubImage2D(GL_TEXTURE_2D, 0, 0, 0, width, height, GL_RGB, GL_UNSIGNED_BYTE, frame)
        glBindTexture(GL_TEXTURE_2D, 0)
        return True

    def dispose(self) -> None:
        if self._texture_id is None:
            return
        glDeleteTextures([self._texture_id])
        self._texture_id = None
        self._pending = None
        self._size = None
        self._ledger.release("texture")


class SphereMaterial:
    """Binds the video texture while the sphere is drawn."""

    def __init__(self, texture: VideoTexture, ledger: ResourceLedger) -> None:
        self.texture = texture
        self._ledger = ledger
        self._alive = True
        ledger.acquire("material")

    def bind(self) -> bool:
        """Bind the texture; False while no frame has been uploaded yet."""
        if not self._alive or not self.texture.has_content:
            return False
        glEnable(GL_TEXTURE_2D)
        glBindTexture(GL_TEXTURE_2D, self.texture.texture_id or 0)
        return True

    def unbind(self) -> None:
        glBindTexture(GL_TEXTURE_2D, 0)
        glDisable(GL_TEXTURE_2D)

    def dispose(self) -> None:
        if not self._alive:
            return
        self._alive = False
        self._ledger.release("material")


class GLRenderer:
    """Viewport and per-frame draw submission."""

    def __init__(self, ledger: ResourceLedger, clear_color: Tuple[float, float, float, float]) -> None:
        self._ledger = ledger
        glClearColor(*clear_color)
        glEnable(GL_DEPTH_TEST)
        # Only counter-clockwise faces are drawn, so an outward sphere renders nothing.
        glEnable(GL_CULL_FACE)
        glCullFace(GL_BACK)
        glFrontFace(GL_CCW)
        self.width = 1
        self.height = 1
        self.frames_rendered = 0
        self._alive = True
        ledger.acquire("renderer")

    def set_size(self, width: int, height: int) -> None:
        self.width = max(1, int(width))
        self.height = max(1, int(height))
        glViewport(0, 0, self.width, self.height)

    def render(self, scene: "PanoramicScene", camera: PerspectiveCamera) -> None:
        if not self._alive:
            return
        glClear(GL_COLOR_BUFFER_BIT | GL_DEPTH_BUFFER_BIT)
        glMatrixMode(GL_PROJECTION)
        # numpy is row-major, GL expects column-major.
        glLoadMatrixf(np.ascontiguousarray(camera.projection_matrix().T, dtype=np.float32))
        glMatrixMode(GL_MODELVIEW)
        glLoadMatrixf(np.ascontiguousarray(camera.view_matrix().T, dtype=np.float32))

        scene.texture.update()
        if scene.material.bind():
            scene.geometry.draw()
            scene.material.unbind()
        self.frames_rendered += 1

    def dispose(self) -> None:
        if not self._alive:
            return
        self._alive = False
        self._ledger.release("renderer")


class PanoramicScene:
    """All GL resources of one viewer, created and released as a unit."""

    def __init__(
        self,
        camera: PerspectiveCamera,
        renderer: GLRenderer,
        geometry: SphereGeometry,
        texture: VideoTexture,
        material: SphereMaterial,
        ledger: ResourceLedger,
    ) -> None:
        self.camera = camera
        self.renderer = renderer
        self.geometry = geometry
        self.texture = texture
        self.material = material
        self._ledger = ledger
        self._disposed = False

    @classmethod
    def create(
        cls,
        settings: ViewerSettings,
        ledger: ResourceLedger,
        width: int,
        height: int,
    ) -> "PanoramicScene":
        """Allocate camera, renderer, sphere, texture and material.

        A failure part-way releases whatever was already allocated.
        """
        allocated: list = []
        try:
            camera = PerspectiveCamera(settings)
            renderer = GLRenderer(ledger, settings.clear_color)
            allocated.append(renderer)
            mesh = build_sphere_mesh(
                settings.sphere_radius,
                settings.width_segments,
                settings.height_segments,
                inverted=True,
            )
            geometry = SphereGeometry(mesh, ledger)
            allocated.append(geometry)
            texture = VideoTexture(ledger)
            allocated.append(texture)
            material = SphereMaterial(texture, ledger)
            allocated.append(material)
        except Exception as exc:  # noqa: BLE001
            for resource in reversed(allocated):
                resource.dispose()
            if isinstance(exc, SceneConstructionError):
                raise
            raise SceneConstructionError(f"Failed to build panoramic scene: {exc}") from exc

        scene = cls(camera, renderer, geometry, texture, material, ledger)
        scene.resize(width, height)
        logger.debug(
            "Panoramic scene created: {} triangles, radius {}",
            mesh.triangle_count,
            settings.sphere_radius,
        )
        return scene

    @property
    def disposed(self) -> bool:
        return self._disposed

    def push_frame(self, frame: np.ndarray) -> None:
        if not self._disposed:
            self.texture.push_frame(frame)

    def resize(self, width: int, height: int) -> None:
        """Keep camera aspect and renderer size in step with the surface."""
        self.camera.set_viewport(width, height)
        self.renderer.set_size(width, height)

    def render(self, orientation: OrientationState) -> bool:
        if self._disposed:
            return False
        self.camera.apply_orientation(orientation)
        self.renderer.render(self, self.camera)
        return True

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        for resource in (self.material, self.texture, self.geometry, self.renderer):
            resource.dispose()
        logger.debug("Panoramic scene released: {}", self._ledger.snapshot())
