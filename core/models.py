"""
Pydantic data models for detections, render plans and API IO.
"""
from __future__ import annotations
from pydantic import BaseModel, Field, field_validator
from typing import List, Optional, Tuple

NUM_KEYPOINTS = 468

Point3D = Tuple[float, float, float]
Point2D = Tuple[float, float]


class FaceResult(BaseModel):
    """One face as reported by the estimator (pixel space)."""
    keypoints3D: List[Point3D] = Field(default_factory=list)
    meshPolylines: List[List[Point2D]] = Field(default_factory=list)
    confidence: float = 0.0


class Detection(BaseModel):
    """Normalized estimator output for one frame (first face only)."""
    timestamp: str
    keypoints: List[Point3D]
    confidence: float = Field(ge=0.0, le=1.0)

    @field_validator("keypoints")
    @classmethod
    def _exactly_468(cls, v: List[Point3D]) -> List[Point3D]:
        if len(v) != NUM_KEYPOINTS:
            raise ValueError(f"expected {NUM_KEYPOINTS} keypoints, got {len(v)}")
        return v


# render plan

class PointMarker(BaseModel):
    x: float
    y: float
    color: Tuple[int, int, int]

class FacePlan(BaseModel):
    points: List[PointMarker] = Field(default_factory=list)
    contours: List[List[Point2D]] = Field(default_factory=list)

class RenderPlan(BaseModel):
    fps: int = 0
    draw_contours: bool = False
    faces: List[FacePlan] = Field(default_factory=list)



# live model


class HistoryEntry(BaseModel):
    index: int
    timestamp: str
    confidence: float
    confidence_label: str
    selected_point: Optional[Point3D] = None

class LiveStatus(BaseModel):
    running: bool
    is_model_loaded: bool
    recording: bool
    fps: int
    selected_keypoint: Optional[int] = None
    history_size: int = 0
    started_at: float | None = None

class RecordingRequest(BaseModel):
    enabled: bool

class KeypointRequest(BaseModel):
    index: Optional[int] = None

class KeypointQuery(BaseModel):
    entry: int
    keypoint: int
    coords: Optional[Point3D] = None
