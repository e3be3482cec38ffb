from __future__ import annotations

import logging
import sys

ROOT_LOGGER = "pycall"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def setup_logging(level: str = "INFO") -> logging.Logger:
    """
    Opt-in console output for pycall only:
      - one stderr handler on the "pycall" logger (calling again replaces it)
      - the host application's root logger is left alone

    Without this call the library stays silent unless the host configures logging.
    """
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(getattr(logging, level.upper()))

    for h in list(root.handlers):
        if getattr(h, "_pycall_console", False):
            root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%H:%M:%S"))
    handler._pycall_console = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    return root
