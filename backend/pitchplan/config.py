"""
Runtime configuration.

Values come from the process environment (optionally a .env file) with the
defaults below. Timing defaults are the global end of every fallback chain:
fixture override -> group default -> global default.
"""

import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./pitchplan.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("true", "1", "yes")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "").split(",") if o.strip()]

# Pitch window used when a pitch has no explicit open/close time
DEFAULT_PITCH_START = os.getenv("DEFAULT_PITCH_START", "09:00")
DEFAULT_PITCH_END = os.getenv("DEFAULT_PITCH_END", "18:00")

DEFAULT_MATCH_DURATION = _env_int("DEFAULT_MATCH_DURATION", 20)
DEFAULT_MATCH_SLACK = _env_int("DEFAULT_MATCH_SLACK", 5)
DEFAULT_TEAM_REST = _env_int("DEFAULT_TEAM_REST", 20)

DEFAULT_BREAK_DURATION = _env_int("DEFAULT_BREAK_DURATION", 15)
MIN_BREAK_DURATION = _env_int("MIN_BREAK_DURATION", 5)
DEFAULT_BREAK_LABEL = "Break"

# Drag interactions (break resize, pitch boundary drag)
DRAG_SNAP_MINUTES = _env_int("DRAG_SNAP_MINUTES", 5)
MIN_PITCH_WINDOW_MINUTES = _env_int("MIN_PITCH_WINDOW_MINUTES", 10)
