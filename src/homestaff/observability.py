"""
HomeStaff - Logging setup.

Modules log through logging.getLogger(__name__); entry points (CLI, web app)
call setup_logging() once.
"""

import logging
import sys


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure root logging for HomeStaff entry points."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
    )

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)
