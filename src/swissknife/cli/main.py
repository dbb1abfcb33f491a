# src/swissknife/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either:
- runs a single command given on the command line (`swissknife task list --status pending`), or
- starts the console REPL.
"""

from __future__ import annotations

import logging
import sys

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_command, run_console_loop
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    # one-shot output goes to stdout; keep stderr quiet unless something is wrong
    if argv:
        console_level = max(console_level, logging.WARNING)

    setup_logging(
        log_dir=settings.data_dir,
        console_level=console_level,
        log_to_file=settings.log_to_file,
    )

    logger.info("Starting %s...", settings.app_name)
    state = create_initial_state(settings=settings)

    try:
        if argv:
            print(run_command(state, " ".join(argv)))
        else:
            run_console_loop(state)
    finally:
        state.storage.close()
        logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
