"""Visualization helpers.

- draw_render_plan: draw landmark points, optional contour lines and the FPS label
- format_coordinates / format_confidence: text for history inspection
"""
from __future__ import annotations
import cv2
import numpy as np
from typing import Optional, Sequence

from core.models import RenderPlan

POINT_RADIUS = 1
CONTOUR_COLOR = (0, 255, 0)


def draw_render_plan(frame: np.ndarray,
                     plan: Optional[RenderPlan],
                     show_fps: bool = True,
                     status: Optional[str] = None) -> np.ndarray:
    """Draw one tick's render plan on a copy of the frame.

    Args:
        frame: BGR image
        plan: points/contours to draw; None draws nothing but the labels
        show_fps: draw "FPS: n" in the top-left corner
        status: optional extra label (e.g. "REC")

    Returns:
        Annotated copy; the input frame is left untouched so every tick starts clean.
    """
    out = frame.copy()
    h, w = out.shape[:2]

    if plan is not None:
        for face in plan.faces:
            if plan.draw_contours:
                for line in face.contours:
                    pts = np.array([[int(x), int(y)] for x, y in line], dtype=np.int32)
                    if len(pts) >= 2:
                        cv2.polylines(out, [pts], False, CONTOUR_COLOR, 1, cv2.LINE_AA)
            for p in face.points:
                x, y = int(p.x), int(p.y)
                if 0 <= x < w and 0 <= y < h:
                    cv2.circle(out, (x, y), POINT_RADIUS, p.color, -1)

    if show_fps:
        fps = plan.fps if plan is not None else 0
        cv2.putText(out, f"FPS: {fps}", (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (255, 255, 255), 2, cv2.LINE_AA)
    if status:
        cv2.putText(out, status, (10, 60), cv2.FONT_HERSHEY_SIMPLEX, 0.8, (0, 0, 255), 2, cv2.LINE_AA)
    return out


def format_coordinates(coords: Optional[Sequence[float]]) -> str:
    if not coords:
        return "N/A"
    return f"({coords[0]:.2f}, {coords[1]:.2f}, {coords[2]:.2f})"


def format_confidence(confidence: float) -> str:
    return f"{confidence * 100:.2f}%"
