# src/diagtask/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

WORKERS_LOGGER = "diagtask.workers"

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
# Same shape as the DEBUG lines workers print on stderr into the same file.
_WORKER_FORMAT = "%(levelname)s %(process)d %(asctime)s.%(msecs)03d: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


class _ForeignErrorsOnly(logging.Filter):
    """Console: everything from diagtask, only errors from other libraries."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.name.startswith("diagtask.") or record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/diagtask",
    console_level: int = logging.INFO,
    worker_log: str | Path | None = None,
) -> None:
    """
    Handlers:
    - stderr console at `console_level`
    - <log_dir>/diagtask.log with every record
    - `worker_log` (optional): launches, launch failures and worker exits only.
      Launched workers append their own stderr to the same file.

    Safe to call again: handlers installed by a previous call are replaced.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    workers = logging.getLogger(WORKERS_LOGGER)
    for lg in (root, workers):
        for h in list(lg.handlers):
            lg.removeHandler(h)
            h.close()

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(console_level)
    ch.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    ch.addFilter(_ForeignErrorsOnly())
    root.addHandler(ch)

    fh = logging.FileHandler(str(log_dir / "diagtask.log"), encoding="utf-8")
    fh.setFormatter(logging.Formatter(_FORMAT, _DATEFMT))
    root.addHandler(fh)

    if worker_log is not None:
        worker_log = Path(worker_log)
        worker_log.parent.mkdir(parents=True, exist_ok=True)
        wh = logging.FileHandler(str(worker_log), encoding="utf-8")
        wh.setFormatter(logging.Formatter(_WORKER_FORMAT, _DATEFMT))
        workers.addHandler(wh)
