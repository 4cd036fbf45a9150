"""Orchestration layer for background feed tasks."""
from .simulator import FeedSimulator

__all__ = ["FeedSimulator"]
