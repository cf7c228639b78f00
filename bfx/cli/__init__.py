"""
CLI module for command-line interface.

This module provides the ``bfx`` command-line tool built on the API client.
"""

from .main import app

__all__ = ["app"]
