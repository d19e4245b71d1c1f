import pytest
from core.history import HistoryStore


def test_append_requires_recording(make_detection):
    h = HistoryStore(capacity=10)
    assert h.recording is False
    assert h.append(make_detection()) is False
    assert h.size() == 0

    h.set_recording(True)
    assert h.append(make_detection()) is True
    assert h.size() == 1


def test_append_ignores_missing_detection():
    h = HistoryStore(recording=True)
    assert h.append(None) is False
    assert len(h) == 0


def test_fifo_keeps_last_ten_in_order(make_detection):
    h = HistoryStore(capacity=10, recording=True)
    dets = [make_detection(seed=i) for i in range(15)]
    for i, d in enumerate(dets):
        h.append(d)
        assert h.size() <= 10
    assert h.size() == 10
    # 6th through 15th detections (0-indexed 5..14)
    assert h.entries() == dets[5:]


def test_recording_off_leaves_buffer_unchanged(make_detection):
    h = HistoryStore(recording=True)
    h.append(make_detection(seed=1))
    before = h.entries()
    h.set_recording(False)
    for i in range(20):
        h.append(make_detection(seed=i))
    assert h.entries() == before


def test_clear_is_independent_of_recording(make_detection):
    h = HistoryStore(recording=True)
    for i in range(3):
        h.append(make_detection(seed=i))
    h.set_recording(False)
    h.clear()
    assert h.size() == 0
    h.set_recording(True)
    h.append(make_detection())
    h.clear()
    assert h.size() == 0


def test_query_keypoint_bounds(make_detection):
    h = HistoryStore(recording=True)
    h.append(make_detection(seed=3))
    assert h.query_keypoint(0, 0) == (3.0, 3.0, 3.0)
    assert h.query_keypoint(0, 467) == (470.0, 3.0 + 467 * 2.0, 3.0 - 467 * 0.5)
    assert h.query_keypoint(0, 468) is None
    assert h.query_keypoint(0, -1) is None
    assert h.query_keypoint(1, 0) is None
    assert h.query_keypoint(-1, 0) is None


def test_track_keypoint_across_entries(make_detection):
    h = HistoryStore(recording=True)
    for i in range(3):
        h.append(make_detection(seed=i))
    assert h.track_keypoint(0) == [(0.0, 0.0, 0.0), (1.0, 1.0, 1.0), (2.0, 2.0, 2.0)]
    assert h.track_keypoint(500) == [None, None, None]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        HistoryStore(capacity=0)
