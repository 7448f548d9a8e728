# src/pm_tracker/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState (seeding the demo data on first run),
then runs the console REPL in the main thread.
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

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/pm_tracker")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "pm-tracker"))

    # IMPORTANT: reuse same settings object
    state = create_initial_state(settings=settings)
    snap = state.coordinator.snapshot
    logger.info(
        "Loaded users=%d projects=%d tasks=%d notifications=%d",
        len(snap.users),
        len(snap.projects),
        len(snap.tasks),
        len(snap.notifications),
    )

    try:
        if settings.console_enabled:
            run_console_loop(state)
        else:
            # Headless run: one deadline pass, then exit (suitable for cron).
            result = state.coordinator.run_deadline_check()
            if result.ok:
                logger.info("Deadline check created %d notification(s).", len(result.value or []))
            else:
                logger.error("Deadline check failed: %s", result.error)
    finally:
        logger.info("Bye.")


if __name__ == "__main__":
    main()
