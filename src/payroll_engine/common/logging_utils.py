from __future__ import annotations

import logging
import sys
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: Optional[str] = None, *, logger_name: str = "payroll_engine") -> logging.Logger:
    """Attach a console handler to the package logger (once) and set its level."""

    logger = logging.getLogger(logger_name)
    logger.setLevel(getattr(logging, (level or "INFO").upper(), logging.INFO))

    if not any(getattr(h, "_payroll_engine", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._payroll_engine = True  # type: ignore[attr-defined]
        logger.addHandler(handler)

    return logger
