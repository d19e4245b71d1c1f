import sys, types
import numpy as np
import pytest

import core.estimator as est_mod
from core.config import Settings
from core.estimator import EstimatorConfig, EstimatorLoadError, MediaPipeFaceEstimator, load_estimator
from core.models import NUM_KEYPOINTS


def test_load_failure_when_mediapipe_missing(monkeypatch):
    monkeypatch.setitem(sys.modules, "mediapipe", None)
    with pytest.raises(EstimatorLoadError):
        load_estimator(settings=Settings(MODEL_PATH="missing.task"))


def test_load_failure_when_model_missing(tmp_path):
    s = Settings(MODEL_PATH=str(tmp_path / "nope.task"))
    with pytest.raises(EstimatorLoadError):
        load_estimator(settings=s)


def test_config_from_settings():
    cfg = EstimatorConfig.from_settings(Settings(INPUT_WIDTH=320, INPUT_HEIGHT=240, MODEL_SCALE=0.5))
    assert (cfg.input_resolution.width, cfg.input_resolution.height) == (320, 240)
    assert cfg.scale == 0.5
    default = EstimatorConfig()
    assert (default.input_resolution.width, default.input_resolution.height, default.scale) == (640, 480, 0.8)


class _LM:
    def __init__(self, x, y, z):
        self.x, self.y, self.z = x, y, z


class _FakeLandmarker:
    def __init__(self, faces):
        self.faces = faces
        self.timestamps = []
        self.closed = False
    def detect_for_video(self, image, ts_ms):
        self.timestamps.append(ts_ms)
        return types.SimpleNamespace(face_landmarks=self.faces)
    def close(self):
        self.closed = True


def _bare_estimator(faces):
    # bypass __init__ so no model file / mediapipe runtime is needed
    est = MediaPipeFaceEstimator.__new__(MediaPipeFaceEstimator)
    est._mp = types.SimpleNamespace(
        Image=lambda image_format, data: data,
        ImageFormat=types.SimpleNamespace(SRGB="srgb"),
    )
    est.config = EstimatorConfig()
    est._landmarker = _FakeLandmarker(faces)
    est._contours = [(0, 1), (1, 2), (470, 471)]
    est._last_ts = -1
    return est


def test_estimate_maps_to_pixels_and_drops_iris():
    landmarks = [_LM(0.5, 0.25, 0.1)] * 478
    est = _bare_estimator([landmarks])
    frame = np.zeros((100, 200, 3), dtype=np.uint8)
    faces = est.estimate(frame)
    assert len(faces) == 1
    f = faces[0]
    assert len(f.keypoints3D) == NUM_KEYPOINTS
    assert f.keypoints3D[0] == (100.0, 25.0, 20.0)
    # iris-only connection is dropped
    assert len(f.meshPolylines) == 2
    assert f.confidence == 1.0


def test_estimate_no_faces_and_monotonic_timestamps():
    est = _bare_estimator([])
    frame = np.zeros((10, 10, 3), dtype=np.uint8)
    assert est.estimate(frame) == []
    assert est.estimate(frame) == []
    ts = est._landmarker.timestamps
    assert ts[1] > ts[0]
    est.close()
    assert est._landmarker.closed
