# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Logging utilities for the mail rescan engine.

Handlers and format are configured once by the CLI entry point through
``logging.basicConfig()``; library modules only ask for named loggers.

Example:
    Typical usage in a module::

        from mail_rescan.logger import get_logger

        logger = get_logger("Rewrite")
        logger.debug("removing header %s", name)
"""

import logging

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str = "MailRescan") -> logging.Logger:
    """Retrieve a logger instance.

    Args:
        name: The logger name. Defaults to "MailRescan".

    Returns:
        A ``logging.Logger`` instance bound to the given name.
    """
    return logging.getLogger(name)


def configure_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure the root logger for command-line use.

    Args:
        level: Level name used when ``verbose`` is false.
        verbose: Force DEBUG level.
    """
    if verbose:
        level = "DEBUG"
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
        force=True,
    )
