import pytest
import core.live as live
from core.config import Settings
from core.estimator import EstimatorLoadError
from core.scheduler import FrameScheduler
from conftest import FakeCapture, ScriptedEstimator, face


def _session(est=None, cap=None):
    est = est or ScriptedEstimator([[face()]])
    cap = cap or FakeCapture()
    sched = FrameScheduler(yield_fn=lambda: None)
    return live.LiveSession(Settings(), estimator_factory=lambda: est,
                            capture_factory=lambda: cap, scheduler=sched), est, cap


def test_run_live_overlay_monkeypatch(monkeypatch):
    shown = []
    monkeypatch.setattr(live.cv2, "imshow", lambda name, img: shown.append(img.shape))
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: None)
    keys = iter([ord("r"), -1, ord("n"), ord("q")])
    monkeypatch.setattr(live.cv2, "waitKey", lambda d: next(keys))

    session, est, cap = _session()
    out = live.run_live_overlay(Settings(), session=session)

    assert out is session
    assert len(shown) == 4
    assert shown[0] == (48, 64, 3)
    # recording was switched on by the first key, so ticks 2..4 were stored
    assert session.history.size() == 3
    assert session.selected_keypoint == 0
    assert cap.released and est.closed


def test_run_live_overlay_load_failure_opens_no_window(monkeypatch):
    shown = []
    monkeypatch.setattr(live.cv2, "imshow", lambda *a, **k: shown.append(1))
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: None)

    def boom():
        raise EstimatorLoadError("missing model")
    session = live.LiveSession(Settings(), estimator_factory=boom, capture_factory=FakeCapture)
    with pytest.raises(EstimatorLoadError):
        live.run_live_overlay(Settings(), session=session)
    assert shown == []
    assert session.scheduler.tick_count == 0


def test_handle_key_commands():
    session, _, _ = _session()
    assert live.handle_key(session, -1) is True
    assert live.handle_key(session, ord("r")) is True
    assert session.recording is True
    assert live.handle_key(session, ord("p")) is True
    assert session.selected_keypoint == 467
    live.handle_key(session, ord("n"))
    assert session.selected_keypoint == 0
    live.handle_key(session, ord("x"))
    assert session.selected_keypoint is None
    assert live.handle_key(session, ord("h")) is True
    assert live.handle_key(session, ord("c")) is True
    assert live.handle_key(session, ord("q")) is False


def test_camera_index_applies_to_passed_session(monkeypatch):
    opened = []
    def fake_camera(index, width, height):
        opened.append(index)
        return FakeCapture()
    monkeypatch.setattr(live, "CameraSource", fake_camera)
    monkeypatch.setattr(live.cv2, "imshow", lambda *a, **k: None)
    monkeypatch.setattr(live.cv2, "destroyAllWindows", lambda: None)
    monkeypatch.setattr(live.cv2, "waitKey", lambda d: ord("q"))

    session = live.LiveSession(Settings(CAMERA_INDEX=0),
                               estimator_factory=lambda: ScriptedEstimator([[]]),
                               scheduler=FrameScheduler(yield_fn=lambda: None))
    live.run_live_overlay(Settings(), camera_index=3, session=session)
    assert opened == [3]
    assert session.s.CAMERA_INDEX == 3


def test_camera_index_rejected_with_custom_capture_factory():
    session, _, _ = _session()
    with pytest.raises(ValueError):
        live.run_live_overlay(Settings(), camera_index=2, session=session)
    assert session.is_model_loaded is False
