"""
Runtime settings for Guess Mosaic, read from the environment (and a local
.env file when present).
"""

import os
import logging
from pathlib import Path
from dotenv import load_dotenv

load_dotenv()

log = logging.getLogger(__name__)


def _int(env_value: str | None, default: int = 0) -> int:
    """Safely convert an environment variable to int."""
    try:
        return int(env_value) if env_value else default
    except ValueError:
        log.warning("Ignoring non-integer setting %r", env_value)
        return default


DEFAULT_LANG: str = os.getenv("GUESSMOSAIC_LANG", "en").strip().lower()
MAX_ATTEMPTS: int = max(1, _int(os.getenv("GUESSMOSAIC_MAX_ATTEMPTS"), 6))
STATE_FILE: Path = Path(
    os.getenv("GUESSMOSAIC_STATE_FILE", str(Path.home() / ".guessmosaic" / "state.json"))
).expanduser()
LOG_LEVEL: str = os.getenv("GUESSMOSAIC_LOG_LEVEL", "INFO").upper()
