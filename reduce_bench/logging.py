"""
logging.py
==========

Tagged logging for the harness. Every record carries a ``[module.function]``
tag so startup diagnostics and per-case failures can be traced back to the
discovery or measurement step that produced them.

Classes:
--------
- TaggedFormatter: A logging formatter that adds module and function name tags.

Functions:
----------
- setup_tagged_logger: Set up a logger writing tagged records through rich.
- configure_global_logging: Configure global logging level for all tagged loggers.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler


class TaggedFormatter(logging.Formatter):
    """
    Formatter that adds a ``tag`` attribute built from the module and
    function that emitted the record.
    """
    def format(self, record):
        record.tag = f"[{record.module}.{record.funcName}]"
        return super().format(record)


def setup_tagged_logger(name=None, level=None, console=None):
    """
    Set up a logger that includes module and function tags in log messages.

    Parameters:
    -----------
    name : str, optional
        Logger name (default: the ``reduce_bench`` package logger).
    level : int, optional
        Logging level (default: None, which uses the globally configured level,
        the root logger level, or INFO as a last resort).
    console : rich.console.Console, optional
        Console to write to (default: a stderr console).

    Returns:
    --------
    logging.Logger
        Configured logger instance.
    """
    logger = logging.getLogger(name or "reduce_bench")

    if level is None:
        if _global_logging_level is not None:
            level = _global_logging_level
        else:
            root_logger = logging.getLogger()
            if root_logger.level != logging.NOTSET:
                level = root_logger.level
            else:
                level = logging.INFO

    logger.setLevel(level)

    if not logger.handlers:  # Avoid duplicate handlers
        handler = RichHandler(
            console=console or Console(stderr=True),
            show_path=False,
            markup=False,
        )
        handler.setLevel(level)
        handler.setFormatter(TaggedFormatter("%(tag)s %(message)s"))
        logger.addHandler(handler)
        # Records are handled here; do not duplicate them on the root logger
        logger.propagate = False
    else:
        for handler in logger.handlers:
            handler.setLevel(level)

    return logger


def configure_global_logging(level=logging.INFO):
    """
    Configure global logging level for the harness loggers and their handlers.

    Parameters:
    -----------
    level : int
        Logging level (e.g., logging.DEBUG, logging.INFO, logging.WARNING)
    """
    global _global_logging_level

    logging.getLogger().setLevel(level)

    for name in list(logging.Logger.manager.loggerDict.keys()):
        if not name.startswith("reduce_bench"):
            continue
        logger = logging.getLogger(name)
        logger.setLevel(level)
        for handler in logger.handlers:
            handler.setLevel(level)

    _global_logging_level = level


# Level applied to loggers created after configure_global_logging()
_global_logging_level = None
