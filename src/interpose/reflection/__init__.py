"""
reflection utilities
"""
from .reflection import TypeDescriptor, get_safe_signature

__all__ = [
    "TypeDescriptor",
    "get_safe_signature"
]
