"""Environment-driven settings for the playoff tracker pipeline and server."""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parent.parent
load_dotenv(PROJECT_ROOT / ".env")

DATA_DIR = PROJECT_ROOT / "data"
EXPORT_DIR = DATA_DIR / "export"

ESPN_BASE_URL = os.getenv(
    "ESPN_BASE_URL",
    "https://site.api.espn.com/apis/site/v2/sports/football/college-football",
)
ESPN_REQUESTS_PER_SECOND = float(os.getenv("ESPN_REQUESTS_PER_SECOND", "8"))
ESPN_MAX_RETRIES = int(os.getenv("ESPN_MAX_RETRIES", "3"))
ESPN_TIMEOUT_SECONDS = int(os.getenv("ESPN_TIMEOUT_SECONDS", "20"))

# FBS scoreboard group
SCOREBOARD_GROUP = os.getenv("SCOREBOARD_GROUP", "80")
SCOREBOARD_LOOKBACK_DAYS = int(os.getenv("SCOREBOARD_LOOKBACK_DAYS", "7"))
# "YYYYMMDD-YYYYMMDD"; the range the scoreboard page shows, trusted over daily pulls
MAIN_SCOREBOARD_RANGE = os.getenv("MAIN_SCOREBOARD_RANGE", "20251128-20251130")
FETCH_MAX_WORKERS = int(os.getenv("FETCH_MAX_WORKERS", "8"))

SOR_TABLE = os.getenv("SOR_TABLE", "team_strength_of_record")
RANKING_CONFIG_PATH = os.getenv("RANKING_CONFIG_PATH", "")

CACHE_TTL = int(os.getenv("API_CACHE_TTL_SECONDS", "30"))
