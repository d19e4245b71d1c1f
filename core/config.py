"""
Configuration for the live face mesh loop.
"""
from pydantic import BaseModel
import os

class Settings(BaseModel):
    """
    Runtime settings with environment-variable overrides.
    """
    CAMERA_INDEX: int = int(os.getenv("CAMERA_INDEX", "0"))
    INPUT_WIDTH: int = int(os.getenv("INPUT_WIDTH", "640"))
    INPUT_HEIGHT: int = int(os.getenv("INPUT_HEIGHT", "480"))

    MODEL_PATH: str = os.getenv("MODEL_PATH", "face_landmarker.task")
    MODEL_SCALE: float = float(os.getenv("MODEL_SCALE", "0.8"))
    MAX_NUM_FACES: int = int(os.getenv("MAX_NUM_FACES", "1"))
    MIN_DETECTION_CONFIDENCE: float = float(os.getenv("MIN_DETECTION_CONFIDENCE", "0.5"))

    HISTORY_CAPACITY: int = int(os.getenv("HISTORY_CAPACITY", "10"))
    RECORD_ON_START: bool = os.getenv("RECORD_ON_START", "false").strip().lower() in ("1", "true", "yes")

    CONTOUR_FPS_THRESHOLD: int = int(os.getenv("CONTOUR_FPS_THRESHOLD", "15"))
    FPS_WINDOW_MS: float = float(os.getenv("FPS_WINDOW_MS", "1000"))
    # worker thread only: pause after a tick whose camera read returned no frame
    NOT_READY_BACKOFF: float = float(os.getenv("NOT_READY_BACKOFF", "0.1"))

    def __init__(self, **data):
        super().__init__(**data)
        # Normalize: capacity at least 1, scale in (0, 1]
        object.__setattr__(self, "HISTORY_CAPACITY", max(1, int(self.HISTORY_CAPACITY)))
        scale = float(self.MODEL_SCALE)
        if not (0.0 < scale <= 1.0):
            scale = 1.0
        object.__setattr__(self, "MODEL_SCALE", scale)
        object.__setattr__(self, "MAX_NUM_FACES", max(1, int(self.MAX_NUM_FACES)))
