"""Prepdeck backend: course-linked goals, progress sync and forecasting."""

__version__ = "0.1.0"
