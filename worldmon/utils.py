import functools
import sys
import time

from loguru import logger


def configure_logging(level: str = "INFO") -> None:
    """Replace the default loguru sink with one at the requested level."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper())


def log_pass(func):
    """
    A decorator that logs an analysis pass.

    Features:
    - Logs the pass name and input size before execution
    - Logs the number of results and elapsed time afterwards
    - Lets exceptions propagate after logging them
    - Preserves function metadata and return values
    """

    @functools.wraps(func)
    def wrapper(events, *args, **kwargs):
        func_name = func.__name__
        logger.debug(f"Entering {func_name} with {len(events)} events")

        started = time.perf_counter()
        try:
            result = func(events, *args, **kwargs)
        except Exception as e:
            logger.error(f"{func_name} failed: {type(e).__name__}: {e}")
            raise

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.debug(f"{func_name}: {len(result)} results in {elapsed_ms:.1f}ms")
        return result

    return wrapper
