import os
from pathlib import Path

from medscan.core.env import load_env

load_env()

BASE_DIR = Path(__file__).resolve().parents[2]  # medscan_service/

MEDSCAN_DB_PATH = Path(os.getenv("MEDSCAN_DB_PATH") or (BASE_DIR / "data" / "medscan.db"))
RECENT_SCANS_LIMIT = int(os.getenv("RECENT_SCANS_LIMIT", "20"))

SOURCE_LANGUAGE = os.getenv("SOURCE_LANGUAGE", "English")
DEFAULT_TONE = os.getenv("DEFAULT_TONE", "standard")
USE_AUTO_REMINDERS = os.getenv("USE_AUTO_REMINDERS", "true").lower() == "true"

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
