"""
Container entrypoint for arpwatch.

Translates environment variables into arpwatch arguments and supervises the
arpwatch process for the lifetime of the container.
"""

__version__ = "1.0.0"
