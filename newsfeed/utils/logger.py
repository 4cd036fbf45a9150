"""
Logging configuration for the news feed engine
Colored console output and async timing
"""

import functools
import logging
import sys
import time
from datetime import datetime
from typing import Optional
import colorama
from colorama import Fore, Style

# Initialize colorama for Windows support
colorama.init()

LOG_COLORS = {
    'DEBUG': Fore.CYAN,
    'INFO': Fore.GREEN,
    'WARNING': Fore.YELLOW,
    'ERROR': Fore.RED,
    'CRITICAL': Fore.MAGENTA
}

class ColoredFormatter(logging.Formatter):
    """Formatter that colors level and logger name on a terminal"""

    def __init__(self, fmt=None, datefmt=None, use_colors=True):
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and sys.stderr.isatty()

    def format(self, record):
        # Work on a copy so other handlers never see escape codes
        record = logging.makeLogRecord(record.__dict__)
        if self.use_colors and record.levelname in LOG_COLORS:
            record.levelname = f"{LOG_COLORS[record.levelname]}{record.levelname}{Style.RESET_ALL}"
            record.name = f"{Fore.BLUE}{record.name}{Style.RESET_ALL}"

        record.timestamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S.%f")[:-3]

        return super().format(record)

class StructuredLogger:
    """Thin wrapper exposing the level methods used across the package"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level, msg, *args, **kwargs):
        getattr(self.logger, level)(msg, *args, **kwargs)

    def debug(self, msg, *args, **kwargs):
        self._log('debug', msg, *args, **kwargs)

    def info(self, msg, *args, **kwargs):
        self._log('info', msg, *args, **kwargs)

    def warning(self, msg, *args, **kwargs):
        self._log('warning', msg, *args, **kwargs)

    def error(self, msg, *args, **kwargs):
        self._log('error', msg, *args, **kwargs)

    def exception(self, msg, *args, **kwargs):
        kwargs.setdefault('exc_info', True)
        self._log('error', msg, *args, **kwargs)

def setup_logger(
    name: str,
    level: Optional[str] = None,
    use_colors: bool = True
) -> StructuredLogger:
    """
    Set up a logger writing colored output to stderr

    Args:
        name: Logger name (usually __name__)
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_colors: Whether to use colored output

    Returns:
        StructuredLogger instance
    """
    from ..config.settings import get_config

    if level is None:
        level = get_config().system.log_level

    logger = logging.getLogger(name)
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    # Remove existing handlers
    logger.handlers = []

    console_handler = logging.StreamHandler(sys.stderr)
    console_format = "%(timestamp)s [%(levelname)s] %(name)s: %(message)s"
    console_handler.setFormatter(ColoredFormatter(console_format, use_colors=use_colors))
    logger.addHandler(console_handler)

    # Prevent propagation to root logger
    logger.propagate = False

    return StructuredLogger(logger)

def get_logger(name: str) -> StructuredLogger:
    """Get or create a logger instance"""
    return setup_logger(name)

def log_async_performance(logger: Optional[StructuredLogger] = None):
    """Decorator to log async function performance"""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            nonlocal logger
            if logger is None:
                logger = get_logger(func.__module__)

            start_time = time.time()
            logger.debug(f"Starting async {func.__name__}")

            try:
                result = await func(*args, **kwargs)
                elapsed_ms = int((time.time() - start_time) * 1000)
                logger.info(f"Completed async {func.__name__} in {elapsed_ms}ms")
                return result
            except Exception as e:
                elapsed_ms = int((time.time() - start_time) * 1000)
                logger.error(f"Failed async {func.__name__} after {elapsed_ms}ms: {e}")
                raise

        return wrapper
    return decorator
