"""
Logging handlers for the entrypoint.
"""

from .loki import LokiHandler

__all__ = ["LokiHandler"]
