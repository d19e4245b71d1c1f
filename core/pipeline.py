# core/pipeline.py
from __future__ import annotations
from datetime import datetime
from typing import List, Optional, Sequence
import logging

from core.capture import CaptureSource
from core.estimator import LandmarkEstimator
from core.models import Detection, FaceResult, FacePlan, PointMarker, RenderPlan, NUM_KEYPOINTS

logger = logging.getLogger(__name__)

CONTOUR_FPS_THRESHOLD = 15

# BGR
POINT_COLOR = (0, 255, 0)
HIGHLIGHT_COLOR = (0, 0, 255)


def contours_enabled(fps: float, threshold: float = CONTOUR_FPS_THRESHOLD) -> bool:
    """Contour lines are only worth drawing while the loop runs above threshold."""
    return fps > threshold


def build_render_plan(faces: Sequence[FaceResult],
                      fps: int,
                      selected_index: Optional[int] = None,
                      threshold: float = CONTOUR_FPS_THRESHOLD) -> RenderPlan:
    """
    Decide what to draw for one tick.

    Point markers are emitted for every keypoint of every face; the selected
    keypoint gets HIGHLIGHT_COLOR. Contours come from the same face record as
    its points and are skipped entirely when contours_enabled() is False.
    """
    draw_contours = contours_enabled(fps, threshold)
    plan = RenderPlan(fps=int(fps), draw_contours=draw_contours)
    for face in faces:
        points = [
            PointMarker(x=x, y=y, color=HIGHLIGHT_COLOR if i == selected_index else POINT_COLOR)
            for i, (x, y, _z) in enumerate(face.keypoints3D)
        ]
        contours = [list(line) for line in face.meshPolylines if line] if draw_contours else []
        plan.faces.append(FacePlan(points=points, contours=contours))
    return plan


class DetectionPipeline:
    """Turns one tick into zero-or-one Detection (first face only)."""
    def __init__(self):
        self.last_faces: List[FaceResult] = []
        self.last_frame = None
        self.frame_ready = False
        self.frame_size: Optional[tuple[int, int]] = None
        self.failures = 0

    def process_frame(self,
                      capture: CaptureSource,
                      estimator: LandmarkEstimator) -> Optional[Detection]:
        """
        Fetch a frame (if ready), run the estimator and normalize the first face.

        Returns None when the frame is not ready, no face is found, or the
        estimator fails; failures are logged and never propagate.
        """
        self.last_faces = []
        self.frame_ready = capture.is_ready()
        if not self.frame_ready:
            logger.debug("[pipeline] capture not ready; skipping tick")
            return None

        frame = capture.frame()
        self.last_frame = frame
        self.frame_size = capture.dimensions()

        try:
            faces = list(estimator.estimate(frame) or [])
        except Exception:
            self.failures += 1
            logger.exception("[pipeline] estimator failed; treating tick as empty")
            return None

        if not faces:
            return None

        first = faces[0]
        if len(first.keypoints3D) != NUM_KEYPOINTS:
            self.failures += 1
            logger.error(f"[pipeline] estimator returned {len(first.keypoints3D)} keypoints; "
                         f"expected {NUM_KEYPOINTS}")
            return None

        self.last_faces = faces
        return Detection(
            timestamp=datetime.now().isoformat(timespec="milliseconds"),
            keypoints=list(first.keypoints3D),
            confidence=min(1.0, max(0.0, float(first.confidence))),
        )
