"""Shared utilities."""

from scout.utils.progress import ProgressTracker

__all__ = ["ProgressTracker"]
