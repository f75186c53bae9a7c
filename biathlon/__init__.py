"""Biathlon race configuration, event processing and final result reporting."""

__version__ = "0.1.0"
__all__ = ["config", "race", "report", "cli"]