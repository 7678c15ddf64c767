# hms_billing/core/logging_setup.py
from __future__ import annotations

import logging
import sys

from hms_billing.core.config import settings

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_configured = False


def setup_logging() -> None:
    global _configured
    if _configured:
        return

    root = logging.getLogger("hms_billing")
    root.setLevel(settings.LOG_LEVEL)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    # Console handler
    ch = logging.StreamHandler(sys.stdout)
    ch.setLevel(settings.LOG_LEVEL)
    ch.setFormatter(formatter)
    root.addHandler(ch)

    # File handler
    if settings.LOG_FILE:
        fh = logging.FileHandler(settings.LOG_FILE, encoding="utf-8")
        fh.setLevel(settings.LOG_LEVEL)
        fh.setFormatter(formatter)
        root.addHandler(fh)

    _configured = True
