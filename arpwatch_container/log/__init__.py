"""
Logging module for the entrypoint.
This module provides functionality to set up console logging and optional Loki shipping.
"""

from .setup import setup_logging

__all__ = ["setup_logging"]
