"""
Configuration module for the news feed engine
"""

from .settings import Config, get_config, reset_config, load_config

__all__ = ["Config", "get_config", "reset_config", "load_config"]
