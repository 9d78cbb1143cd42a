import logging
import sys


def get_logger(name: str = "kvprobe"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        # stdout carries the probe report
        h = logging.StreamHandler(sys.stderr)
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(message)s")
        h.setFormatter(fmt)
        logger.addHandler(h)
        logger.setLevel(logging.WARNING)
    return logger


def set_level(logger: logging.Logger, level: str) -> None:
    logger.setLevel(level)


def set_verbose(logger: logging.Logger) -> None:
    """Switch the tool to DEBUG and surface Azure SDK pipeline logs on the same handler."""
    logger.setLevel(logging.DEBUG)
    azure_log = logging.getLogger("azure")
    azure_log.setLevel(logging.INFO)
    for h in logger.handlers:
        if h not in azure_log.handlers:
            azure_log.addHandler(h)
