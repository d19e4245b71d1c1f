# core/scheduler.py
"""
Frame scheduler: a single worker that requests the next tick as soon as the
current one finishes, and samples throughput over a fixed window.
"""
from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

FPS_WINDOW_MS = 1000.0


def _now_ms() -> float:
    return time.perf_counter() * 1000.0


@dataclass
class LoopState:
    previous_tick_time: Optional[float] = None
    frame_counter: int = 0
    last_fps_sample_time: Optional[float] = None
    current_fps: int = 0
    cancelled: bool = False


class FrameScheduler:
    """Drives on_tick(time_ms) repeatedly until cancel() is called.

    A failing callback is logged and the loop keeps going; only cancel() stops it.
    `clock` returns milliseconds and `yield_fn` runs between ticks (defaults to
    sleep(0) so other threads get a turn).
    """
    def __init__(self,
                 clock: Callable[[], float] = _now_ms,
                 yield_fn: Optional[Callable[[], None]] = None,
                 fps_window_ms: float = FPS_WINDOW_MS):
        self._clock = clock
        self._yield = yield_fn if yield_fn is not None else (lambda: time.sleep(0))
        self.fps_window_ms = float(fps_window_ms)
        self.state: Optional[LoopState] = None
        self.tick_count = 0
        self._cancel_requested = False
        self._thread: Optional[threading.Thread] = None

    # ---- read access ----
    @property
    def current_fps(self) -> int:
        return self.state.current_fps if self.state else 0

    @property
    def running(self) -> bool:
        return self.state is not None and not self.state.cancelled

    # ---- lifecycle ----
    def start(self, on_tick: Callable[[float], None]) -> None:
        """Run the loop on a background daemon thread."""
        if self._thread is not None and self._thread.is_alive():
            return
        self._begin()
        self._thread = threading.Thread(target=self._loop, args=(on_tick, None), daemon=True)
        self._thread.start()

    def run(self, on_tick: Callable[[float], None], max_ticks: Optional[int] = None) -> None:
        """Run the loop in the calling thread until cancelled (or max_ticks reached)."""
        self._begin()
        self._loop(on_tick, max_ticks)

    def cancel(self) -> None:
        """Stop requesting ticks. Does not interrupt a tick in flight."""
        self._cancel_requested = True
        if self.state is not None:
            self.state.cancelled = True

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    # ---- internals ----
    def _begin(self) -> None:
        self._cancel_requested = False
        self.state = LoopState()
        self.tick_count = 0

    def _loop(self, on_tick: Callable[[float], None], max_ticks: Optional[int]) -> None:
        state = self.state
        logger.debug("[scheduler] loop started")
        while not (state.cancelled or self._cancel_requested):
            t = float(self._clock())
            self._sample_fps(state, t)
            try:
                on_tick(t)
            except Exception:
                logger.exception("[scheduler] tick callback failed; continuing")
            state.previous_tick_time = t
            self.tick_count += 1
            if max_ticks is not None and self.tick_count >= max_ticks:
                break
            self._yield()
        state.cancelled = True
        logger.debug(f"[scheduler] loop stopped after {self.tick_count} ticks")

    def _sample_fps(self, state: LoopState, t: float) -> None:
        if state.last_fps_sample_time is None:
            # first tick opens the window; it is not counted inside it
            state.last_fps_sample_time = t
            return
        state.frame_counter += 1
        elapsed = t - state.last_fps_sample_time
        if elapsed >= self.fps_window_ms:
            # half-up rounding
            state.current_fps = int(math.floor(state.frame_counter * 1000.0 / elapsed + 0.5))
            state.frame_counter = 0
            state.last_fps_sample_time = t
