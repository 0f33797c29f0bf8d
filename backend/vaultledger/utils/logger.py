# vaultledger/utils/logger.py

import logging
import os
import sys

ROOT_LOGGER = "vaultledger"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logger(level: str | None = None) -> logging.Logger:
    """Configure the vaultledger logger once; later calls only adjust the level"""
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(getattr(logging, level_name, logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)

    return logger


def get_logger(name: str) -> logging.Logger:
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
