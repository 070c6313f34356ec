import os

from dotenv import load_dotenv

load_dotenv()


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "")
    try:
        return int(raw) if raw.strip() else default
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw.strip() else default
    except ValueError:
        return default


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Generate-time defaults
DEFAULT_NUM_COURTS = _env_int("DEFAULT_NUM_COURTS", 2)

# Backtracking search ceiling; whichever limit is hit first stops the search
SOLVER_MAX_NODES = _env_int("SOLVER_MAX_NODES", 200_000)
SOLVER_MAX_SECONDS = _env_float("SOLVER_MAX_SECONDS", 5.0)
