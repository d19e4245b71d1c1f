"""
REST endpoints for the live face mesh session.
"""
from fastapi import APIRouter, HTTPException
import logging

from core.config import Settings
from core.estimator import EstimatorLoadError
from core.live import LiveSession
from core.models import KeypointQuery, KeypointRequest, LiveStatus, RecordingRequest


router = APIRouter()
settings = Settings()
session = LiveSession(settings)
logger = logging.getLogger(__name__)


@router.post("/live/start")
async def live_start():
    """
    Load the landmark model, open the camera and start the frame loop.

    Returns:
        dict: {"status": "started" | "already_running"}
    """
    if session.running:
        return {"status": "already_running"}
    try:
        session.start()
    except EstimatorLoadError as e:
        logger.exception("[api] model load failed")
        raise HTTPException(status_code=503, detail=f"Model load failed: {e}")
    except Exception as e:
        logger.exception("[api] live start failed")
        raise HTTPException(status_code=500, detail=str(e))
    return {"status": "started"}

@router.post("/live/stop")
async def live_stop():
    if not session.stop():
        return {"status": "not_running"}
    return {"status": "stopped"}

@router.get("/live/status", response_model=LiveStatus)
async def live_status():
    return session.status()

@router.post("/live/recording")
async def live_recording(req: RecordingRequest):
    logger.debug(f"[api] /live/recording enabled={req.enabled}")
    session.set_recording(req.enabled)
    return {"recording": session.recording}

@router.get("/live/history")
async def live_history():
    """
    Recorded detections, oldest first, with the selected keypoint resolved per entry.
    """
    return {
        "selected_keypoint": session.selected_keypoint,
        "entries": [e.model_dump() for e in session.history_view()],
    }

@router.delete("/live/history")
async def live_history_clear():
    session.clear_history()
    return {"status": "cleared"}

@router.post("/live/keypoint")
async def live_keypoint(req: KeypointRequest):
    try:
        session.set_selected_keypoint(req.index)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return {"selected_keypoint": session.selected_keypoint}

@router.get("/live/history/{entry}/keypoints/{keypoint}", response_model=KeypointQuery)
async def live_history_keypoint(entry: int, keypoint: int):
    coords = session.history.query_keypoint(entry, keypoint)
    return KeypointQuery(entry=entry, keypoint=keypoint, coords=coords)
