"""
Utility modules for the news feed engine
"""

from .logger import setup_logger, get_logger, log_async_performance

__all__ = [
    "setup_logger",
    "get_logger",
    "log_async_performance",
]
