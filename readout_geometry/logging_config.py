"""
Logging for readout_geometry.

Modules log under the package namespace (``readout_geometry.geometry.module``,
``readout_geometry.segmentation.mapping``, ...). Nothing is printed until a
tool calls setup_logging(); library users can attach their own handlers to
the package logger instead.
"""
import logging
import sys
from typing import Optional, Union

PACKAGE = "readout_geometry"

LOG_FORMAT = "%(levelname)-7s %(name)s: %(message)s"

# Marks the handlers installed by setup_logging so a later call replaces only those
_HANDLER_TAG = "_readout_geometry_handler"


def _resolve_level(level: Union[int, str]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(str(level).upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level '{level}'")
    return value


def _tagged(handler: logging.Handler) -> logging.Handler:
    setattr(handler, _HANDLER_TAG, True)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    return handler


def setup_logging(level: Union[int, str] = logging.INFO, log_file: Optional[str] = None,
                  stream=None) -> logging.Logger:
    """
    Attaches output handlers to the readout_geometry logger.

    Parameters:
    -----------
    level : int or str
        Level of the package logger, e.g. logging.DEBUG or "warning"
    log_file : str, optional
        File receiving a copy of the package log
    stream : file-like, optional
        Console stream, sys.stdout if not given

    Returns:
    --------
    logging.Logger : the package logger
    """
    logger = logging.getLogger(PACKAGE)
    logger.setLevel(_resolve_level(level))

    for handler in [h for h in logger.handlers if getattr(h, _HANDLER_TAG, False)]:
        logger.removeHandler(handler)
        handler.close()

    logger.addHandler(_tagged(logging.StreamHandler(stream if stream is not None else sys.stdout)))
    if log_file:
        logger.addHandler(_tagged(logging.FileHandler(log_file, mode='w', encoding='utf-8')))
    return logger
