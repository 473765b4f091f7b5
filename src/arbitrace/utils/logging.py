"""
Logging configuration for arbitrace.

This module provides a centralized logging setup with colored output
for console and optional file logging.
"""

import logging
import sys
from typing import Optional

from arbitrace.utils.colors import Colors

# Custom log level for very detailed tracing
TRACE = 5
logging.addLevelName(TRACE, 'TRACE')


class ColoredFormatter(logging.Formatter):
    """
    Formatter that adds ANSI colors to log levels.

    Colors are only applied if the output stream supports them.
    """

    LEVEL_COLORS = {
        TRACE: Colors.DIM,
        logging.DEBUG: Colors.DIM,
        logging.INFO: Colors.BRIGHT_CYAN,
        logging.WARNING: Colors.BRIGHT_YELLOW,
        logging.ERROR: Colors.BRIGHT_RED,
        logging.CRITICAL: Colors.BOLD + Colors.BRIGHT_RED,
    }

    def __init__(self, fmt: str = None, datefmt: str = None, use_colors: bool = True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors:
            color = self.LEVEL_COLORS.get(record.levelno, '')
            reset = Colors.RESET if color else ''
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{reset}"
        return super().format(record)


class ArbitraceLogger(logging.Logger):
    """
    Extended logger with trace level support.
    """

    def trace(self, msg, *args, **kwargs):
        """Log a message with TRACE level."""
        if self.isEnabledFor(TRACE):
            self._log(TRACE, msg, args, **kwargs)


logging.setLoggerClass(ArbitraceLogger)


def setup_logging(
    quiet: bool = False,
    debug: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None,
    use_colors: bool = True
) -> logging.Logger:
    """
    Configure logging for arbitrace.

    Args:
        quiet: If True, suppress all console output
        debug: If True, set level to DEBUG (default is INFO)
        verbose: If True, set level to TRACE (more detailed than DEBUG)
        log_file: Optional path to log file
        use_colors: Whether to use colored output

    Returns:
        Configured logger instance
    """
    if verbose:
        effective_level = TRACE
    elif debug:
        effective_level = logging.DEBUG
    else:
        effective_level = logging.INFO

    logger = logging.getLogger('arbitrace')
    logger.setLevel(min(effective_level, logging.DEBUG) if log_file else effective_level)
    logger.handlers.clear()
    logger.propagate = False

    if not quiet:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(effective_level)

        supports_color = (
            hasattr(sys.stderr, 'isatty') and
            sys.stderr.isatty() and
            use_colors
        )

        console_handler.setFormatter(ColoredFormatter(
            fmt='%(levelname)s: %(message)s',
            use_colors=supports_color
        ))
        logger.addHandler(console_handler)

    if log_file:
        # File handler (no colors)
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    return logger


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Optional name for the logger. If None, returns the root arbitrace logger.
              If provided, returns a child logger (e.g., 'arbitrace.pipeline').

    Returns:
        Logger instance
    """
    if name:
        return logging.getLogger(f'arbitrace.{name}')
    return logging.getLogger('arbitrace')


def log_trace(log: logging.Logger, msg: str, *args, **kwargs):
    """Log a TRACE message (more detailed than DEBUG) on any logger."""
    if hasattr(log, 'trace'):
        log.trace(msg, *args, **kwargs)
    else:
        log.log(TRACE, msg, *args, **kwargs)
