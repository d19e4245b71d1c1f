"""
Camera capture sources.
"""
from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Optional, Tuple

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class CaptureSource(ABC):
    """Frame provider. Callers check is_ready() before reading frame()/dimensions()."""

    @abstractmethod
    def is_ready(self) -> bool: ...

    @abstractmethod
    def frame(self) -> np.ndarray: ...

    def dimensions(self) -> Tuple[int, int]:
        """(width, height) of the current frame."""
        h, w = self.frame().shape[:2]
        return int(w), int(h)

    def release(self) -> None:
        pass


class CameraSource(CaptureSource):
    """cv2.VideoCapture wrapper; ready once the device is open and the latest read succeeded."""
    def __init__(self, camera_index: int = 0, width: int = 640, height: int = 480):
        self.camera_index = camera_index
        self._cap = cv2.VideoCapture(camera_index)
        if not self._cap.isOpened():
            raise RuntimeError(f"Could not open camera index {camera_index}")
        # Ask for the configured resolution (not guaranteed to be honored)
        self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
        self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        self._frame: Optional[np.ndarray] = None

    def is_ready(self) -> bool:
        if not self._cap.isOpened():
            return False
        ok, frame = self._cap.read()
        if not ok or frame is None:
            return False
        self._frame = frame
        return True

    def frame(self) -> np.ndarray:
        if self._frame is None:
            raise RuntimeError("No frame captured yet")
        return self._frame

    def release(self) -> None:
        self._cap.release()
