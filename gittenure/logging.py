import logging
from typing import Any

# Library logging, silent unless the application adds a handler
logger = logging.getLogger("gittenure")
logger.addHandler(logging.NullHandler())

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Get a logger instance for the specified name.

    Args:
        name: The name of the logger to get. If None, returns the main gittenure logger.
              If specified, returns a child logger of the main gittenure logger.

    Returns:
        logging.Logger: The requested logger instance.
    """
    if name is None:
        return logger
    return logger.getChild(name)


def set_log_level(level: int | str) -> None:
    """Set the logging level for the gittenure library.

    Args:
        level: The logging level to set. Can be either a string (e.g., 'INFO')
               or an integer (e.g., logging.INFO).
    """
    logger.setLevel(level)


def add_stream_handler(
    level: int | str = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    **handler_kwargs: Any,
) -> None:
    """Add a stream handler to the gittenure logger.

    Args:
        level: The logging level for the handler. Defaults to INFO.
        format_string: The format string for log messages. Includes the thread name so
            output from concurrent workers can be told apart.
        **handler_kwargs: Additional keyword arguments to pass to StreamHandler.
    """
    # FileHandler subclasses StreamHandler, only plain stream handlers count as duplicates
    if any(type(h) is logging.StreamHandler for h in logger.handlers):
        logger.warning("StreamHandler already exists for gittenure logger.")
        return

    handler = logging.StreamHandler(**handler_kwargs)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)


def add_file_handler(
    filename: str,
    level: int | str = logging.INFO,
    format_string: str = DEFAULT_FORMAT,
    **handler_kwargs: Any,
) -> None:
    """Add a file handler to the gittenure logger.

    Args:
        filename: The name of the file to log to.
        level: The logging level for the handler. Defaults to INFO.
        format_string: The format string for log messages.
        **handler_kwargs: Additional keyword arguments to pass to FileHandler.
    """
    handler = logging.FileHandler(filename, **handler_kwargs)
    if any(isinstance(h, logging.FileHandler) and h.baseFilename == handler.baseFilename for h in logger.handlers):
        handler.close()
        logger.warning(f"FileHandler for {filename} already exists for gittenure logger.")
        return

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(format_string))
    logger.addHandler(handler)


def remove_all_handlers() -> None:
    """Remove all handlers from the gittenure logger (except the default NullHandler)."""
    for handler in logger.handlers[:]:
        if not isinstance(handler, logging.NullHandler):
            logger.removeHandler(handler)
            handler.close()


__all__ = [
    "logger",
    "get_logger",
    "set_log_level",
    "add_stream_handler",
    "add_file_handler",
    "remove_all_handlers",
]
