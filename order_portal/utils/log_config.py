import logging
import sys

DEFAULT_LOG_LEVEL = logging.INFO


def configure_logging(level=DEFAULT_LOG_LEVEL):
    """Idempotent logging configuration for the app."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
