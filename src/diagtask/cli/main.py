# src/diagtask/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (clearing stale records), then runs the
console driver in the main thread.
"""

from __future__ import annotations

import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    setup_logging(
        log_dir=settings.log_dir,
        console_level=console_level,
        worker_log=settings.worker_log_path,
    )

    logger.info(
        "Starting %s (records=%s scripts=%s)...",
        settings.app_name,
        settings.working_dir,
        settings.scripts_dir,
    )

    state = create_initial_state(settings=settings)

    try:
        run_console_loop(state)
    finally:
        state.service.end_session(state.session_id)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
