"""Inspection Data Analyzer API."""

__version__ = "0.1.0"
