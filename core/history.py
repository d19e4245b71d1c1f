# core/history.py
"""
Bounded detection history.

Keeps the most recent CAPACITY detections in insertion order; the oldest entry
is evicted first once the buffer is full. Recording can be toggled without
touching what is already stored.
"""
from __future__ import annotations

import collections
import logging
import threading
from typing import Deque, List, Optional

from core.models import Detection, Point3D

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 10


class HistoryStore:
    """FIFO buffer of detections; all mutations are serialized by a lock."""
    def __init__(self, capacity: int = DEFAULT_CAPACITY, recording: bool = False):
        if int(capacity) < 1:
            raise ValueError("capacity must be >= 1")
        self.capacity = int(capacity)
        self._entries: Deque[Detection] = collections.deque()
        self._lock = threading.Lock()
        self._recording = bool(recording)

    # ---- recording ----
    @property
    def recording(self) -> bool:
        return self._recording

    def set_recording(self, enabled: bool) -> None:
        self._recording = bool(enabled)
        logger.debug(f"[history] recording={self._recording}")

    # ---- mutation ----
    def append(self, detection: Optional[Detection]) -> bool:
        """Append to the tail and evict from the head past capacity.

        Returns True when the detection was stored.
        """
        if not self._recording or detection is None or not detection.keypoints:
            return False
        with self._lock:
            self._entries.append(detection)
            while len(self._entries) > self.capacity:
                self._entries.popleft()
        return True

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
        logger.debug("[history] cleared")

    # ---- queries ----
    def size(self) -> int:
        with self._lock:
            return len(self._entries)

    def __len__(self) -> int:
        return self.size()

    def entries(self) -> List[Detection]:
        with self._lock:
            return list(self._entries)

    def query_keypoint(self, entry_index: int, keypoint_index: int) -> Optional[Point3D]:
        """Coordinates of one landmark in one entry, or None if either index is out of range."""
        with self._lock:
            if not (0 <= entry_index < len(self._entries)):
                return None
            keypoints = self._entries[entry_index].keypoints
        if not (0 <= keypoint_index < len(keypoints)):
            return None
        x, y, z = keypoints[keypoint_index]
        return (float(x), float(y), float(z))

    def track_keypoint(self, keypoint_index: int) -> List[Optional[Point3D]]:
        """One landmark across every entry, oldest first."""
        return [self.query_keypoint(i, keypoint_index) for i in range(self.size())]
