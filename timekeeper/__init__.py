"""Timekeeper — employee time-and-attendance tracking service."""

__version__ = "1.0.0"
