from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Tuple

from .lib.env import PATHS

DEFAULT_LOG_PATH = PATHS.log_default
FALLBACK_LOG_NAME = "devcontainer-bootstrap.log"

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def _open_log_file(log_path: str) -> Tuple[logging.Handler, str]:
    # Not every container is provisioned as root; /var/log may be read-only.
    try:
        Path(log_path).parent.mkdir(parents=True, exist_ok=True)
        return logging.FileHandler(log_path), log_path
    except OSError:
        fallback = str(Path.cwd() / FALLBACK_LOG_NAME)
        return logging.FileHandler(fallback), fallback


def configure_logging(log_path: str = DEFAULT_LOG_PATH, level: int = logging.INFO) -> str:
    """Attach a file handler and a stderr handler to the root logger.

    stdout is left alone: it carries only the version report. Calling this
    again is a no-op. Returns the log file actually in use, which is the
    cwd fallback when log_path cannot be opened.
    """

    root = logging.getLogger()
    root.setLevel(level)

    if getattr(root, "_devcontainer_bootstrap_log_path", None):
        return root._devcontainer_bootstrap_log_path  # type: ignore[attr-defined]

    file_handler, chosen_path = _open_log_file(log_path)
    console = logging.StreamHandler(sys.stderr)

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT)
    for h in (file_handler, console):
        h.setFormatter(fmt)
        root.addHandler(h)

    root._devcontainer_bootstrap_log_path = chosen_path  # type: ignore[attr-defined]

    logging.getLogger(__name__).info(
        "Logging initialized (requested=%s, actual=%s)", log_path, chosen_path
    )
    return chosen_path
