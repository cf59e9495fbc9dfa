"""Centralized path resolution for the engine's on-disk state."""

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

OUTPUT_DIR = BASE_DIR / "output"
DB_PATH = Path(os.environ.get("FANTASYCORPS_DB", OUTPUT_DIR / "fantasycorps.db"))
