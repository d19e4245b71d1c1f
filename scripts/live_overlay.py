"""Run live face mesh overlay.

Usage:
    uvicorn api.main:app --reload  # (separate, for API)
    python scripts/live_overlay.py  # (to see camera overlay window)

Keys: q quit, r record, c clear history, n/p select keypoint, x unselect, h print history.
"""
import logging
from core.config import Settings
from core.live import run_live_overlay

if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    s = Settings()
    run_live_overlay(s)
