"""
This module provides utility functions.
"""
from .stringbuilder import StringBuilder
from .logger import ConfigureLogger

__all__ = [
    "StringBuilder",
    "ConfigureLogger"
]
