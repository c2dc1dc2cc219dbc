import logging
import os
import sys
import traceback

from colorlog import ColoredFormatter

from pelion_indexer import constants as CONSTANTS

LOGGER_NAME = "pelion_indexer"


def setup_logger(debug_mode=False):
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    # Lambda forwards stdout to CloudWatch
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logging.DEBUG if debug_mode else logging.INFO)

    formatter = ColoredFormatter(
        "%(log_color)s[%(levelname)s] %(name)s: %(message)s",
        log_colors={
            "DEBUG":    "cyan",
            "INFO":     "green",
            "WARNING":  "yellow",
            "ERROR":    "red",
            "CRITICAL": "red,bg_white",
        }
    )
    handler.setFormatter(formatter)

    if not logger.handlers:
        logger.addHandler(handler)
    else:
        for existing in logger.handlers:
            existing.setLevel(logger.level)

    return logger


def get_debug_mode():
    return os.environ.get(CONSTANTS.ENV_LOG_MODE, "").strip().upper() == "DEBUG"


def get_logger(name=None):
    """Child logger of the package logger, e.g. ``pelion_indexer.dispatcher``."""
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    return logging.getLogger(f"{LOGGER_NAME}.{name.rsplit('.', 1)[-1]}")


def print_stack_trace():
    """Log the current exception's traceback when debug mode is enabled."""
    if get_debug_mode():
        logger.error(traceback.format_exc())


# Reconfigured by the Lambda handler on cold start.
logger = setup_logger(debug_mode=get_debug_mode())
