"""
News feed engine
Races upstream news providers and caches results per keyword
"""

__version__ = "0.1.0"

from . import config, data, orchestration, persistence, utils

__all__ = ["config", "data", "orchestration", "persistence", "utils"]
