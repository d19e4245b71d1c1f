import pytest
import numpy as np

from core.models import Detection, FaceResult, NUM_KEYPOINTS


def make_keypoints(seed: float = 0.0, n: int = NUM_KEYPOINTS):
    return [(seed + i, seed + i * 2.0, seed - i * 0.5) for i in range(n)]


class FakeCapture:
    """Capture source that is ready after `warmup` polls."""
    def __init__(self, warmup: int = 0, shape=(48, 64, 3)):
        self.warmup = warmup
        self.polls = 0
        self.released = False
        self._frame = np.zeros(shape, dtype=np.uint8)
    def is_ready(self):
        self.polls += 1
        return self.polls > self.warmup
    def frame(self):
        return self._frame
    def dimensions(self):
        h, w = self._frame.shape[:2]
        return w, h
    def release(self):
        self.released = True


class ScriptedEstimator:
    """Returns (or raises) scripted results in order; repeats the last one."""
    def __init__(self, script):
        self.script = list(script)
        self.calls = 0
        self.closed = False
    def estimate(self, frame):
        item = self.script[min(self.calls, len(self.script) - 1)]
        self.calls += 1
        if isinstance(item, Exception):
            raise item
        return item
    def close(self):
        self.closed = True


def face(seed: float = 0.0, confidence: float = 0.9, n: int = NUM_KEYPOINTS):
    kps = make_keypoints(seed, n)
    return FaceResult(
        keypoints3D=kps,
        meshPolylines=[[(kps[0][0], kps[0][1]), (kps[1][0], kps[1][1])]],
        confidence=confidence,
    )


@pytest.fixture
def make_detection():
    def _make(seed: float = 0.0, confidence: float = 0.9):
        return Detection(timestamp=f"2026-01-01T00:00:{int(seed):02d}.000",
                         keypoints=make_keypoints(seed), confidence=confidence)
    return _make
