"""Logging configuration using loguru"""

import sys
import time
from contextlib import contextmanager
from typing import Iterator

from loguru import logger

from recommender.core.config import settings


def setup_logging() -> None:
    """Configure application logging"""

    # Remove default handler
    logger.remove()

    log_format = (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )

    logger.add(
        sys.stderr,
        format=log_format,
        level="DEBUG" if settings.debug else "INFO",
        colorize=True,
    )

    # File handler for production, one JSON record per line
    if settings.environment == "production":
        logger.add(
            "logs/recommender.log",
            rotation="10 MB",
            retention="7 days",
            compression="zip",
            serialize=True,
            level="INFO",
        )


@contextmanager
def log_timing(span: str, **fields) -> Iterator[dict]:
    """
    Time a block and emit one structured DEBUG record when it finishes.

    The yielded dict can be filled in by the caller (e.g. ``count``) and
    ends up in the record's ``extra``.

    Example:
        with log_timing("scorer.popularity", user_id=7) as span:
            items = scorer.score(7, 20)
            span["count"] = len(items)
    """
    extra = dict(fields)
    start = time.perf_counter()
    try:
        yield extra
    except Exception:
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.bind(span=span, elapsed_ms=round(elapsed_ms, 2), **extra).error(
            f"{span} failed after {elapsed_ms:.2f}ms"
        )
        raise
    elapsed_ms = (time.perf_counter() - start) * 1000
    logger.bind(span=span, elapsed_ms=round(elapsed_ms, 2), **extra).debug(
        f"{span} finished in {elapsed_ms:.2f}ms"
    )


# Export logger instance
__all__ = ["logger", "setup_logging", "log_timing"]
