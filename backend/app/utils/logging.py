"""
PhosDocs — Pipeline step logger with duration tracking.

LOG_LEVEL (default INFO) controls verbosity. Retry attempts are logged
at WARNING, fallbacks and degraded output at WARNING, per-line details
at DEBUG.
"""

import logging
import os
import time
from contextlib import contextmanager
from typing import Generator

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s | %(levelname)-7s | %(message)s",
    datefmt="%H:%M:%S",
)

logger = logging.getLogger("phosdocs")


@contextmanager
def step_timer(step_name: str) -> Generator[None, None, None]:
    """Log the start and duration of a pipeline step, and whether it raised."""
    logger.info("▶ %s — started", step_name)
    start = time.perf_counter()
    try:
        yield
    except Exception:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.error("✗ %s — failed after %.0f ms", step_name, elapsed_ms)
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.info("✔ %s — completed in %.0f ms", step_name, elapsed_ms)
