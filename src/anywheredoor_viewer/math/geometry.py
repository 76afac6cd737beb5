"""Geometry helpers for the panoramic sphere and the viewing camera.

Conventions follow a Y-up, right-handed world: the camera looks down -Z by
default, yaw rotates about +Y and pitch about the camera's +X axis.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

TWO_PI = 2.0 * math.pi


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp ``value`` into ``[lower, upper]``; NaN collapses to ``lower``."""
    if value != value:  # NaN
        return lower
    return float(min(upper, max(lower, value)))


@dataclass(slots=True)
class SphereMesh:
    """Indexed triangle mesh with per-vertex texture coordinates."""

    positions: np.ndarray  # (N, 3) float32
    normals: np.ndarray  # (N, 3) float32
    uvs: np.ndarray  # (N, 2) float32
    indices: np.ndarray  # (M, 3) uint32

    @property
    def vertex_count(self) -> int:
        return int(self.positions.shape[0])

    @property
    def triangle_count(self) -> int:
        return int(self.indices.shape[0])


def build_sphere_mesh(
    radius: float,
    width_segments: int,
    height_segments: int,
    inverted: bool = True,
) -> SphereMesh:
    """Tessellate a UV sphere for equirectangular texturing.

    With ``inverted`` the X axis is mirrored, which reverses the winding so the
    front faces (counter-clockwise) point at the centre, and normals point
    inward. Mirroring X also keeps the texture the right way round when seen
    from inside.
    """
    if radius <= 0.0:
        raise ValueError("Sphere radius must be positive")
    if width_segments < 3 or height_segments < 2:
        raise ValueError("Sphere needs at least 3 width and 2 height segments")

    u = np.linspace(0.0, 1.0, width_segments + 1, dtype=np.float64)
    v = np.linspace(0.0, 1.0, height_segments + 1, dtype=np.float64)
    uu, vv = np.meshgrid(u, v)  # rows follow v (top to bottom)

    theta = uu * TWO_PI
    phi = vv * math.pi
    x = -np.cos(theta) * np.sin(phi)
    y = np.cos(phi)
    z = np.sin(theta) * np.sin(phi)
    unit = np.stack([x, y, z], axis=-1).reshape(-1, 3)

    if inverted:
        unit[:, 0] *= -1.0
    positions = unit * radius
    normals = -unit if inverted else unit.copy()
    uvs = np.stack([uu, 1.0 - vv], axis=-1).reshape(-1, 2)

    stride = width_segments + 1
    triangles: list[tuple[int, int, int]] = []
    for iy in range(height_segments):
        for ix in range(width_segments):
            a = iy * stride + ix + 1
            b = iy * stride + ix
            c = (iy + 1) * stride + ix
            d = (iy + 1) * stride + ix + 1
            # Degenerate triangles at the poles are skipped.
            if iy != 0:
                triangles.append((a, b, d))
            if iy != height_segments - 1:
                triangles.append((b, c, d))

    indices = np.asarray(triangles, dtype=np.uint32)
    return SphereMesh(
        positions=positions.astype(np.float32),
        normals=normals.astype(np.float32),
        uvs=uvs.astype(np.float32),
        indices=indices,
    )


def face_orientation(mesh: SphereMesh) -> np.ndarray:
    """Signed alignment of each face normal with its outward radial direction.

    Positive values mean the counter-clockwise front face looks away from the
    centre, negative values mean it looks at the centre.
    """
    tri = mesh.positions[mesh.indices.astype(np.int64)]
    a, b, c = tri[:, 0], tri[:, 1], tri[:, 2]
    face_normals = np.cross(b - a, c - a)
    centroids = (a + b + c) / 3.0
    return np.einsum("ij,ij->i", face_normals, centroids)


def rotation_x(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, c, -s, 0.0],
            [0.0, s, c, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def rotation_y(angle: float) -> np.ndarray:
    c, s = math.cos(angle), math.sin(angle)
    return np.array(
        [
            [c, 0.0, s, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [-s, 0.0, c, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )


def translation(x: float, y: float, z: float) -> np.ndarray:
    matrix = np.identity(4, dtype=np.float64)
    matrix[:3, 3] = (x, y, z)
    return matrix


def camera_rotation(yaw: float, pitch: float) -> np.ndarray:
    """World rotation of the camera: yaw about +Y first, then pitch about local +X."""
    return rotation_y(yaw) @ rotation_x(pitch)


def view_matrix(yaw: float, pitch: float, position: Tuple[float, float, float]) -> np.ndarray:
    """Inverse of the camera's world transform (rotation then translation)."""
    inverse_rotation = rotation_x(-pitch) @ rotation_y(-yaw)
    return inverse_rotation @ translation(-position[0], -position[1], -position[2])


def look_direction(yaw: float, pitch: float) -> np.ndarray:
    """Unit vector the camera looks along for the given orientation."""
    forward = camera_rotation(yaw, pitch) @ np.array([0.0, 0.0, -1.0, 0.0])
    return forward[:3]


def perspective_matrix(fov_y_deg: float, aspect: float, near: float, far: float) -> np.ndarray:
    """OpenGL-style projection matrix (same as gluPerspective)."""
    if near <= 0.0 or far <= near:
        raise ValueError("Perspective requires 0 < near < far")
    aspect = max(1e-6, float(aspect))
    f = 1.0 / math.tan(math.radians(fov_y_deg) / 2.0)
    depth = near - far
    return np.array(
        [
            [f / aspect, 0.0, 0.0, 0.0],
            [0.0, f, 0.0, 0.0],
            [0.0, 0.0, (far + near) / depth, (2.0 * far * near) / depth],
            [0.0, 0.0, -1.0, 0.0],
        ],
        dtype=np.float64,
    )
