"""
Facial landmark estimator adapters.

The loop only needs `estimate(frame) -> list[FaceResult]`; the MediaPipe Tasks
FaceLandmarker is the bundled implementation. MediaPipe is imported lazily so the
rest of the package (and its tests) work without the model stack loaded.
"""
from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from typing import List, Optional

import cv2
import numpy as np
from pydantic import BaseModel, Field

from core.config import Settings
from core.models import FaceResult, NUM_KEYPOINTS

logger = logging.getLogger(__name__)


class EstimatorLoadError(RuntimeError):
    """The estimator could not be initialized; the loop must not start."""


class InputResolution(BaseModel):
    width: int = 640
    height: int = 480

class EstimatorConfig(BaseModel):
    input_resolution: InputResolution = Field(default_factory=InputResolution)
    scale: float = Field(default=0.8, gt=0.0, le=1.0)

    @classmethod
    def from_settings(cls, settings: Settings) -> "EstimatorConfig":
        return cls(
            input_resolution=InputResolution(width=settings.INPUT_WIDTH, height=settings.INPUT_HEIGHT),
            scale=settings.MODEL_SCALE,
        )


class LandmarkEstimator(ABC):
    """
    Model adapter interface.

    Implementations take a BGR image (H,W,3 uint8) and return zero or more faces
    with pixel-space keypoints.
    """

    @abstractmethod
    def estimate(self, frame: np.ndarray) -> List[FaceResult]: ...

    @abstractmethod
    def close(self) -> None: ...


class MediaPipeFaceEstimator(LandmarkEstimator):
    """
    MediaPipe FaceLandmarker (VIDEO running mode).

    Notes:
    - Inference runs on the frame resized to input_resolution * scale; landmarks
      are normalized so they are mapped back onto the full frame.
    - The landmarker emits 478 points (468 mesh + 10 iris); only the mesh is kept.
    - z is scaled by frame width, as MediaPipe defines it.
    """

    def __init__(self,
                 config: EstimatorConfig,
                 model_path: str,
                 max_num_faces: int = 1,
                 min_detection_confidence: float = 0.5) -> None:
        try:
            import mediapipe as mp  # type: ignore
            from mediapipe.tasks import python as mp_tasks  # type: ignore
            from mediapipe.tasks.python import vision  # type: ignore
        except Exception as e:
            raise EstimatorLoadError(
                "MediaPipe is not installed. Install it with: pip install mediapipe"
            ) from e

        if not os.path.exists(model_path):
            raise EstimatorLoadError(f"Face landmarker model not found: {model_path}")

        self._mp = mp
        self.config = config
        options = vision.FaceLandmarkerOptions(
            base_options=mp_tasks.BaseOptions(model_asset_path=model_path),
            running_mode=vision.RunningMode.VIDEO,
            num_faces=int(max_num_faces),
            min_face_detection_confidence=float(min_detection_confidence),
        )
        try:
            self._landmarker = vision.FaceLandmarker.create_from_options(options)
        except Exception as e:
            raise EstimatorLoadError(f"Could not create face landmarker: {e}") from e

        self._contours = [
            (int(c.start), int(c.end))
            for c in vision.FaceLandmarksConnections.FACE_LANDMARKS_CONTOURS
        ]
        self._last_ts = -1

    def _working_size(self) -> tuple[int, int]:
        res = self.config.input_resolution
        return (max(1, int(res.width * self.config.scale)),
                max(1, int(res.height * self.config.scale)))

    def estimate(self, frame: np.ndarray) -> List[FaceResult]:
        H, W = frame.shape[:2]
        small = cv2.resize(frame, self._working_size(), interpolation=cv2.INTER_AREA)
        rgb = cv2.cvtColor(small, cv2.COLOR_BGR2RGB)
        mp_image = self._mp.Image(image_format=self._mp.ImageFormat.SRGB, data=rgb)

        # VIDEO mode requires strictly increasing timestamps
        ts_ms = int(cv2.getTickCount() / cv2.getTickFrequency() * 1000)
        ts_ms = max(ts_ms, self._last_ts + 1)
        self._last_ts = ts_ms
        result = self._landmarker.detect_for_video(mp_image, ts_ms)

        faces: List[FaceResult] = []
        for landmarks in result.face_landmarks or []:
            pts = [(float(lm.x) * W, float(lm.y) * H, float(lm.z) * W)
                   for lm in landmarks[:NUM_KEYPOINTS]]
            polylines = [
                [(pts[a][0], pts[a][1]), (pts[b][0], pts[b][1])]
                for a, b in self._contours
                if a < len(pts) and b < len(pts)
            ]
            faces.append(FaceResult(keypoints3D=pts, meshPolylines=polylines, confidence=1.0))
        return faces

    def close(self) -> None:
        try:
            self._landmarker.close()
        except Exception:
            logger.warning("[estimator] failed to close landmarker")


def load_estimator(config: Optional[EstimatorConfig] = None,
                   settings: Optional[Settings] = None) -> LandmarkEstimator:
    """
    Build the MediaPipe estimator.

    Raises:
        EstimatorLoadError: on any initialization failure.
    """
    settings = settings or Settings()
    config = config or EstimatorConfig.from_settings(settings)
    logger.debug(f"[estimator] loading model={settings.MODEL_PATH} "
                 f"input={config.input_resolution.width}x{config.input_resolution.height} scale={config.scale}")
    try:
        est = MediaPipeFaceEstimator(
            config,
            model_path=settings.MODEL_PATH,
            max_num_faces=settings.MAX_NUM_FACES,
            min_detection_confidence=settings.MIN_DETECTION_CONFIDENCE,
        )
    except EstimatorLoadError:
        raise
    except Exception as e:
        raise EstimatorLoadError(f"Estimator load failed: {e}") from e
    logger.debug("[estimator] model loaded")
    return est
