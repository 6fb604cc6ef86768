"""
threading utilities
"""
from .thread_local import ThreadLocal, CallDepth

__all__ = [
    "ThreadLocal",
    "CallDepth",
]
