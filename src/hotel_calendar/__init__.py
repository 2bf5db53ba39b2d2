"""Unified calendar engine for the hotel back-office dashboard."""

__version__ = "0.1.0"
