import numpy as np
import pytest

from anywheredoor_viewer.config import ViewerSettings
from anywheredoor_viewer.models.orientation import OrientationState
from anywheredoor_viewer.viewer import scene as scene_module
from anywheredoor_viewer.viewer.scene import PanoramicScene, ResourceLedger, SceneConstructionError


class GLRecorder:
    def __init__(self):
        self.calls = []
        self._next_id = 0

    def generate(self, name):
        def _gen(count):
            self.calls.append(name)
            self._next_id += 1
            return self._next_id

        return _gen

    def record(self, name):
        def _call(*args):
            self.calls.append(name)

        return _call

    def count(self, name):
        return self.calls.count(name)


@pytest.fixture
def gl(monkeypatch):
    recorder = GLRecorder()
    for name in dir(scene_module):
        if name.startswith("gl") and callable(getattr(scene_module, name)):
            monkeypatch.setattr(scene_module, name, recorder.record(name))
    monkeypatch.setattr(scene_module, "glGenLists", recorder.generate("glGenLists"))
    monkeypatch.setattr(scene_module, "glGenTextures", recorder.generate("glGenTextures"))
    return recorder


@pytest.fixture
def settings():
    return ViewerSettings(width_segments=8, height_segments=4)


def test_create_and_dispose_returns_to_baseline(gl, settings):
    ledger = ResourceLedger()
    for _ in range(3):
        scene = PanoramicScene.create(settings, ledger, 800, 450)
        assert ledger.snapshot() == {"geometry": 1, "texture": 1, "material": 1, "renderer": 1}
        scene.dispose()
        assert ledger.empty
    assert gl.count("glDeleteLists") == 3
    assert gl.count("glDeleteTextures") == 3


def test_dispose_is_idempotent(gl, settings):
    ledger = ResourceLedger()
    scene = PanoramicScene.create(settings, ledger, 100, 100)
    scene.dispose()
    scene.dispose()
    assert ledger.empty
    assert scene.disposed
    assert not scene.render(OrientationState())


def test_resize_updates_aspect_and_viewport(gl, settings):
    scene = PanoramicScene.create(settings, ResourceLedger(), 800, 450)
    assert scene.camera.aspect == pytest.approx(16 / 9)
    scene.resize(400, 225)
    assert scene.camera.aspect == pytest.approx(16 / 9)
    assert (scene.renderer.width, scene.renderer.height) == (400, 225)
    scene.resize(300, 300)
    assert scene.camera.aspect == pytest.approx(1.0)


def test_failure_part_way_releases_allocated_resources(gl, settings, monkeypatch):
    monkeypatch.setattr(scene_module, "glGenTextures", lambda count: 0)
    ledger = ResourceLedger()
    with pytest.raises(SceneConstructionError):
        PanoramicScene.create(settings, ledger, 640, 360)
    assert ledger.empty
    assert gl.count("glDeleteLists") == 1


def test_unexpected_errors_are_wrapped(gl, settings, monkeypatch):
    def broken(*args):
        raise MemoryError("out of display lists")

    monkeypatch.setattr(scene_module, "glNewList", broken)
    ledger = ResourceLedger()
    with pytest.raises(SceneConstructionError, match="out of display lists"):
        PanoramicScene.create(settings, ledger, 640, 360)
    assert ledger.empty


def test_render_skips_draw_until_first_frame(gl, settings):
    scene = PanoramicScene.create(settings, ResourceLedger(), 640, 360)
    assert scene.render(OrientationState(yaw=0.5, pitch=0.1))
    assert gl.count("glCallList") == 0
    assert scene.camera.yaw == 0.5 and scene.camera.pitch == 0.1

    scene.push_frame(np.zeros((32, 64, 3), dtype=np.uint8))
    scene.render(OrientationState())
    assert gl.count("glTexImage2D") == 1
    assert gl.count("glCallList") == 1
    assert scene.texture.size == (64, 32)

    scene.push_frame(np.zeros((32, 64, 3), dtype=np.uint8))
    scene.render(OrientationState())
    assert gl.count("glTexSubImage2D") == 1
    assert scene.renderer.frames_rendered == 3


def test_texture_rejects_non_rgb_frames(gl, settings):
    scene = PanoramicScene.create(settings, ResourceLedger(), 640, 360)
    with pytest.raises(ValueError):
        scene.push_frame(np.zeros((4, 4, 4), dtype=np.uint8))


def test_camera_zoom_is_clamped(gl, settings):
    scene = PanoramicScene.create(settings, ResourceLedger(), 640, 360)
    assert scene.camera.fov == 75.0
    scene.camera.zoom(50)
    assert scene.camera.fov == settings.min_fov_deg
    scene.camera.zoom(-50)
    assert scene.camera.fov == settings.max_fov_deg


def test_ledger_rejects_unbalanced_release():
    ledger = ResourceLedger()
    with pytest.raises(RuntimeError):
        ledger.release("texture")
    with pytest.raises(ValueError):
        ledger.acquire("shader")
