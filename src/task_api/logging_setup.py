from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union


class _ThirdPartyNoiseFilter(logging.Filter):
    """
    Keep console output readable:
    - allow all task_api logs
    - uvicorn lifecycle messages at INFO, access lines only at WARNING+
    - SQL echo (sqlalchemy.engine) passes when echo is switched on
    - any other third-party logger only at WARNING+
    """

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name

        if name.startswith("task_api"):
            return True

        if name == "uvicorn.access":
            return record.levelno >= logging.WARNING

        if name.startswith("uvicorn") or name.startswith("sqlalchemy.engine"):
            return record.levelno >= logging.INFO

        return record.levelno >= logging.WARNING


# PUBLIC_INTERFACE
def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """
    Configure root logging with:
    - Console handler on stderr at `level`, filtered for third-party noise
    - Optional file handler with full DEBUG logs

    Call this once at process start, before the app is created.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)

    # Remove any pre-existing handlers to avoid duplicates.
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setLevel(logging.DEBUG)
        fh.setFormatter(fmt)
        root.addHandler(fh)

    # Route warnings.warn(...) into logging as 'py.warnings'
    logging.captureWarnings(True)
