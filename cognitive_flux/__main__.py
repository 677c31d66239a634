from __future__ import annotations

import logging
import os

from .app import run

LOG_LEVEL_ENV = "COGNITIVE_FLUX_LOG_LEVEL"


def main() -> int:
    """Entry point for running Cognitive Flux from the command line."""
    level = os.environ.get(LOG_LEVEL_ENV, "WARNING").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return run()


if __name__ == "__main__":
    raise SystemExit(main())
