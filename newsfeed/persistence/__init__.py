"""Persistence layer - durable article store"""

from .articles import ArticleRepository

__all__ = ["ArticleRepository"]
