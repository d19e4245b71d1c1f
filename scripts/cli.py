"""
CLI to run the live face mesh window with settings overrides.
"""
from __future__ import annotations
import argparse, logging, sys
from core.config import Settings
from core.estimator import EstimatorLoadError
from core.live import LiveSession, run_live_overlay

def main(argv=None):
    p = argparse.ArgumentParser()
    p.add_argument("--camera", type=int, default=None, help="Camera index")
    p.add_argument("--model", default=None, help="Path to face_landmarker.task")
    p.add_argument("--scale", type=float, default=None, help="Inference downscale factor (0, 1]")
    p.add_argument("--record", action="store_true", help="Start with recording enabled")
    p.add_argument("--keypoint", type=int, default=None, help="Keypoint index to highlight (0-467)")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    overrides = {}
    if args.camera is not None:
        overrides["CAMERA_INDEX"] = args.camera
    if args.model:
        overrides["MODEL_PATH"] = args.model
    if args.scale is not None:
        overrides["MODEL_SCALE"] = args.scale
    if args.record:
        overrides["RECORD_ON_START"] = True
    settings = Settings(**overrides)

    session = LiveSession(settings)
    if args.keypoint is not None:
        session.set_selected_keypoint(args.keypoint)
    try:
        run_live_overlay(settings, session=session)
    except EstimatorLoadError as e:
        print(f"Error loading model: {e}", file=sys.stderr)
        return 1

    for entry in session.history_view():
        print(f"Detection {entry.index + 1} - {entry.timestamp} Confidence: {entry.confidence_label}")
    return 0

if __name__ == "__main__":
    sys.exit(main())
