# core/live.py
"""
Live (real-time) face mesh loop.

Each tick reads a camera frame, runs the landmark estimator, optionally records
the detection into the bounded history and builds a render plan:
- landmark points every tick (selected keypoint highlighted)
- contour lines only while the sampled FPS stays above CONTOUR_FPS_THRESHOLD

LiveSession is the control surface used by the API (background worker thread);
run_live_overlay drives the same session in the foreground with an OpenCV window.
"""

from __future__ import annotations

import time
from typing import Callable, List, Optional
import logging

import cv2
import numpy as np

from core.config import Settings
from core.capture import CaptureSource, CameraSource
from core.estimator import EstimatorLoadError, LandmarkEstimator, load_estimator
from core.history import HistoryStore
from core.models import Detection, HistoryEntry, LiveStatus, NUM_KEYPOINTS, RenderPlan
from core.pipeline import DetectionPipeline, build_render_plan
from core.scheduler import FrameScheduler
from core.visual import draw_render_plan, format_confidence, format_coordinates

logger = logging.getLogger(__name__)

RenderCallback = Callable[[np.ndarray, RenderPlan], None]


# -----------------------------------------------------------------------------
# LiveSession: owns history, pipeline and scheduler for one camera
# -----------------------------------------------------------------------------
class LiveSession:
    """Composes FrameScheduler -> DetectionPipeline -> HistoryStore."""
    def __init__(self,
                 settings: Settings,
                 estimator_factory: Optional[Callable[[], LandmarkEstimator]] = None,
                 capture_factory: Optional[Callable[[], CaptureSource]] = None,
                 render_callback: Optional[RenderCallback] = None,
                 scheduler: Optional[FrameScheduler] = None):
        self.s = settings
        self.history = HistoryStore(settings.HISTORY_CAPACITY, recording=settings.RECORD_ON_START)
        self.pipeline = DetectionPipeline()
        self.scheduler = scheduler or FrameScheduler(fps_window_ms=settings.FPS_WINDOW_MS)
        # default factories read self.s at open() time so later overrides apply
        self._estimator_factory = estimator_factory or (lambda: load_estimator(settings=self.s))
        self._capture_factory = capture_factory or (
            lambda: CameraSource(self.s.CAMERA_INDEX, self.s.INPUT_WIDTH, self.s.INPUT_HEIGHT)
        )
        self._custom_capture = capture_factory is not None
        self._render = render_callback
        self._estimator: Optional[LandmarkEstimator] = None
        self._capture: Optional[CaptureSource] = None
        self._selected: Optional[int] = None
        self._started_at: Optional[float] = None
        self.last_plan: Optional[RenderPlan] = None
        self.last_error: Optional[str] = None

    # ---- lifecycle ----
    def open(self) -> None:
        """Load the estimator and open the camera.

        Raises:
            EstimatorLoadError: model failed to load (reported once; nothing is started)
            RuntimeError: camera could not be opened
        """
        if self._estimator is None:
            try:
                self._estimator = self._estimator_factory()
            except EstimatorLoadError as e:
                self.last_error = str(e)
                logger.error(f"[live] error loading model: {e}")
                raise
            except Exception as e:
                self.last_error = str(e)
                logger.error(f"[live] error loading model: {e}")
                raise EstimatorLoadError(str(e)) from e
        if self._capture is None:
            try:
                self._capture = self._capture_factory()
            except Exception as e:
                self.last_error = str(e)
                logger.error(f"[live] error opening camera: {e}")
                self._close_estimator()
                raise
        self.last_error = None

    def start(self) -> bool:
        """Open resources and run ticks on the scheduler's worker thread.

        Returns False if the loop is already running.
        """
        if self.running:
            return False
        self.open()
        self._started_at = time.time()
        self.scheduler.start(self._worker_tick)
        logger.debug("[live] session started")
        return True

    def _worker_tick(self, time_ms: float) -> None:
        """tick() for the background worker, which has no display to pace it."""
        self.tick(time_ms)
        if not self.pipeline.frame_ready:
            # camera gave nothing; back off instead of spinning on read()
            time.sleep(max(0.0, self.s.NOT_READY_BACKOFF))

    def stop(self, timeout: float = 2.0) -> bool:
        """Cancel the loop and release camera/model. Returns False if nothing was running."""
        was_running = self.running
        self.scheduler.cancel()
        self.scheduler.join(timeout)
        self.close()
        if was_running:
            logger.debug("[live] session stopped")
        return was_running

    def close(self) -> None:
        if self._capture is not None:
            try:
                self._capture.release()
            except Exception:
                logger.warning("[live] failed to release camera")
            self._capture = None
        self._close_estimator()
        self._started_at = None

    def _close_estimator(self) -> None:
        if self._estimator is not None:
            try:
                self._estimator.close()
            except Exception:
                logger.warning("[live] failed to close estimator")
            self._estimator = None

    # ---- one cycle ----
    def tick(self, time_ms: float) -> Optional[Detection]:
        """Capture -> estimate -> record -> plan -> render."""
        if self._estimator is None or self._capture is None:
            return None

        detection = self.pipeline.process_frame(self._capture, self._estimator)
        if detection is not None:
            self.history.append(detection)

        plan = build_render_plan(
            self.pipeline.last_faces,
            self.current_fps,
            self._selected,
            threshold=self.s.CONTOUR_FPS_THRESHOLD,
        )
        self.last_plan = plan
        frame = self.pipeline.last_frame
        if self._render is not None and frame is not None:
            self._render(frame, plan)
        return detection

    # ---- control surface ----
    def set_recording(self, enabled: bool) -> None:
        self.history.set_recording(enabled)

    def clear_history(self) -> None:
        self.history.clear()

    def set_selected_keypoint(self, index: Optional[int]) -> None:
        if index is not None and not (0 <= int(index) < NUM_KEYPOINTS):
            raise ValueError(f"keypoint index must be in [0, {NUM_KEYPOINTS - 1}]")
        self._selected = None if index is None else int(index)

    @property
    def selected_keypoint(self) -> Optional[int]:
        return self._selected

    @property
    def recording(self) -> bool:
        return self.history.recording

    @property
    def current_fps(self) -> int:
        return self.scheduler.current_fps

    @property
    def history_entries(self) -> List[Detection]:
        return self.history.entries()

    @property
    def is_model_loaded(self) -> bool:
        return self._estimator is not None

    @property
    def running(self) -> bool:
        return self.scheduler.running

    def status(self) -> LiveStatus:
        return LiveStatus(
            running=self.running,
            is_model_loaded=self.is_model_loaded,
            recording=self.recording,
            fps=self.current_fps,
            selected_keypoint=self._selected,
            history_size=self.history.size(),
            started_at=self._started_at,
        )

    def history_view(self) -> List[HistoryEntry]:
        """History entries for display, with the selected keypoint resolved per entry."""
        out: List[HistoryEntry] = []
        for i, det in enumerate(self.history.entries()):
            point = None
            if self._selected is not None and 0 <= self._selected < len(det.keypoints):
                point = tuple(float(v) for v in det.keypoints[self._selected])
            out.append(HistoryEntry(
                index=i,
                timestamp=det.timestamp,
                confidence=det.confidence,
                confidence_label=format_confidence(det.confidence),
                selected_point=point,
            ))
        return out


# -----------------------------------------------------------------------------
# Live camera overlay (foreground OpenCV window)
# -----------------------------------------------------------------------------
WINDOW_NAME = "Face Mesh Live (q to quit)"


def handle_key(session: LiveSession, key: int) -> bool:
    """
    Apply a keyboard command to the session. Returns False when the loop should stop.

    q quit | r toggle recording | c clear history | n/p next/previous keypoint
    x clear selection | h log the selected keypoint across history
    """
    if key < 0:
        return True
    ch = chr(key & 0xFF)
    if ch == "q":
        return False
    if ch == "r":
        session.set_recording(not session.recording)
    elif ch == "c":
        session.clear_history()
    elif ch == "n":
        cur = session.selected_keypoint
        session.set_selected_keypoint(0 if cur is None else (cur + 1) % NUM_KEYPOINTS)
    elif ch == "p":
        cur = session.selected_keypoint
        session.set_selected_keypoint(NUM_KEYPOINTS - 1 if cur is None else (cur - 1) % NUM_KEYPOINTS)
    elif ch == "x":
        session.set_selected_keypoint(None)
    elif ch == "h":
        for entry in session.history_view():
            logger.info(f"Detection {entry.index + 1} - {entry.timestamp} "
                        f"confidence={entry.confidence_label} "
                        f"point={format_coordinates(entry.selected_point)}")
    return True


def run_live_overlay(settings: Settings,
                     camera_index: Optional[int] = None,
                     session: Optional[LiveSession] = None) -> LiveSession:
    """
    Open webcam, run the face mesh loop and draw landmarks in a live window.

    waitKey(1) after each imshow paces the loop to the display. Press 'q' to quit.
    Raises EstimatorLoadError / RuntimeError before any window is opened.
    When a session is passed, camera_index is applied to that session's settings.
    """
    if camera_index is not None:
        settings = settings.model_copy(update={"CAMERA_INDEX": int(camera_index)})
        if session is not None:
            if session._custom_capture:
                raise ValueError("camera_index cannot override a session with its own capture factory")
            session.s = session.s.model_copy(update={"CAMERA_INDEX": int(camera_index)})

    def _show(frame: np.ndarray, plan: RenderPlan) -> None:
        status = "REC" if session.recording else None
        cv2.imshow(WINDOW_NAME, draw_render_plan(frame, plan, status=status))

    if session is None:
        session = LiveSession(settings, render_callback=_show)
    elif session._render is None:
        session._render = _show

    session.open()

    def on_tick(time_ms: float) -> None:
        session.tick(time_ms)
        key = cv2.waitKey(1)
        if not handle_key(session, key):
            session.scheduler.cancel()

    try:
        session.scheduler.run(on_tick)
    finally:
        session.close()
        cv2.destroyAllWindows()
    return session
