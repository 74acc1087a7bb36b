#!/usr/bin/env python3
# backend/run.py
"""
Development server runner.
Creates missing tables, then serves the API with auto-reload.
"""
import os
from pathlib import Path
import sys

# Add backend to path
backend_dir = Path(__file__).parent
sys.path.insert(0, str(backend_dir))
os.chdir(backend_dir)

import uvicorn  # noqa: E402

from gym_booking.init_db import init_db  # noqa: E402

if __name__ == "__main__":
    init_db()
    uvicorn.run("gym_booking.main:app", host="0.0.0.0", port=8000, reload=True, log_level="info")
