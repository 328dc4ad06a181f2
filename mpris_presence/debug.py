# mpris_presence/debug.py
import logging
import os
import sys
from pathlib import Path
from typing import Optional

DEBUG_ENV = "MPRIS_PRESENCE_DEBUG"
DEFAULT_LOG_FILE = Path.home() / ".cache" / "mpris-presence" / "debug.log"

_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def debug_enabled() -> bool:
    return os.getenv(DEBUG_ENV, "").strip() in {"1", "true", "yes", "on"}


def setup_logging(debug: bool = False, log_file: Optional[Path] = None) -> None:
    root = logging.getLogger()
    root.setLevel(logging.DEBUG if debug else logging.INFO)
    root.handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    console.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
    root.addHandler(console)

    if debug:
        path = log_file or DEFAULT_LOG_FILE
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            handler = logging.FileHandler(path, encoding="utf-8")
        except OSError as e:
            root.warning("Debug log file %s unavailable: %s", path, e)
        else:
            handler.setFormatter(logging.Formatter(_FORMAT, datefmt=_DATEFMT))
            root.addHandler(handler)

    for lib in ("urllib3", "PIL", "asyncio"):
        logging.getLogger(lib).setLevel(logging.WARNING)
