import math

import numpy as np
import pytest

from anywheredoor_viewer.math import geometry


def test_sphere_counts_match_segments():
    mesh = geometry.build_sphere_mesh(500.0, 60, 40)
    assert mesh.vertex_count == 61 * 41
    # Pole rows contribute one triangle per segment, the rest two.
    assert mesh.triangle_count == 60 * (2 * 40 - 2)
    radii = np.linalg.norm(mesh.positions, axis=1)
    assert np.allclose(radii, 500.0, atol=1e-2)


def test_inverted_sphere_faces_point_inward():
    outward = geometry.face_orientation(geometry.build_sphere_mesh(1.0, 16, 8, inverted=False))
    inward = geometry.face_orientation(geometry.build_sphere_mesh(1.0, 16, 8, inverted=True))
    assert (outward > 0).all()
    assert (inward < 0).all()


def test_inverted_normals_point_at_centre():
    mesh = geometry.build_sphere_mesh(10.0, 12, 6)
    dots = np.einsum("ij,ij->i", mesh.normals, mesh.positions)
    assert (dots <= 1e-6).all()


def test_uvs_cover_the_full_texture():
    mesh = geometry.build_sphere_mesh(1.0, 8, 4)
    assert mesh.uvs.min() == pytest.approx(0.0)
    assert mesh.uvs.max() == pytest.approx(1.0)


def test_sphere_rejects_degenerate_arguments():
    with pytest.raises(ValueError):
        geometry.build_sphere_mesh(0.0, 8, 4)
    with pytest.raises(ValueError):
        geometry.build_sphere_mesh(1.0, 2, 4)


def test_default_look_direction_is_negative_z():
    assert np.allclose(geometry.look_direction(0.0, 0.0), [0.0, 0.0, -1.0])


def test_pitch_up_looks_up_and_yaw_turns_about_y():
    up = geometry.look_direction(0.0, math.pi / 2)
    assert np.allclose(up, [0.0, 1.0, 0.0], atol=1e-9)
    turned = geometry.look_direction(math.pi / 2, 0.0)
    assert np.allclose(turned, [-1.0, 0.0, 0.0], atol=1e-9)


def test_yaw_then_pitch_keeps_horizon_level():
    for yaw, pitch in [(0.7, 0.4), (-2.1, -1.2), (3.0, 1.5)]:
        rotation = geometry.camera_rotation(yaw, pitch)
        right = rotation[:3, 0]
        # No roll: the camera's right axis never leaves the horizontal plane.
        assert math.isclose(right[1], 0.0, abs_tol=1e-12)


def test_view_matrix_inverts_camera_transform():
    position = (0.0, 0.0, 0.1)
    yaw, pitch = 1.1, -0.3
    world = geometry.translation(*position) @ geometry.camera_rotation(yaw, pitch)
    assert np.allclose(geometry.view_matrix(yaw, pitch, position) @ world, np.identity(4))


def test_perspective_matrix_matches_glu():
    matrix = geometry.perspective_matrix(90.0, 2.0, 0.1, 1000.0)
    assert math.isclose(matrix[1, 1], 1.0, rel_tol=1e-9)
    assert math.isclose(matrix[0, 0], 0.5, rel_tol=1e-9)
    assert matrix[3, 2] == -1.0
    with pytest.raises(ValueError):
        geometry.perspective_matrix(75.0, 1.0, 1.0, 0.5)


def test_clamp():
    assert geometry.clamp(5.0, 0.0, 1.0) == 1.0
    assert geometry.clamp(float("nan"), 0.0, 1.0) == 0.0
