import json
import logging
from datetime import datetime

from smartcare.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_debug_logger = logging.getLogger("smartcare.debug")


def setup_logging(level=None):
    """Configure root logging once; safe to call again on reload."""
    level = (level or settings.LOG_LEVEL).upper()
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)
    # firebase/google clients are chatty at INFO
    logging.getLogger("google").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def log_debug(event: str, data: dict):
    """
    Logs structured debug info if AI_DEBUG_MODE is enabled.
    """
    if not settings.AI_DEBUG_MODE:
        return

    entry = {
        "timestamp": datetime.now().isoformat(),
        "event": event,
        "data": data,
    }
    _debug_logger.info(json.dumps(entry, default=str))
