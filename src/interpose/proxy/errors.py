"""
Exceptions raised by the proxy machinery.

Everything derived from `ProxyError` originates in the proxy itself. Failures raised by the target while an
invocation is forwarded are never wrapped, so anything that is not a `ProxyError` came from the target.
"""
from __future__ import annotations

from typing import Any


class ProxyError(Exception):
    """
    Base class of all failures caused by the proxy machinery.
    """
    pass

class InvalidTargetError(ProxyError, ValueError):
    """
    Raised when a proxy is created without a target.
    """
    pass

class RecordFrozenError(ProxyError):
    """
    Raised when a frozen invocation is mutated or forwarded.
    """
    pass

class DoubleForwardError(RecordFrozenError):
    """
    Raised when an invocation is forwarded a second time.
    """
    pass

class NoReturnValueError(ProxyError):
    """
    Raised when an invocation completed without ever producing a return value.
    """
    pass

class HandlerReentrancyError(ProxyError, RecursionError):
    """
    Raised when the same operation re-enters the same proxy deeper than the configured limit.
    """
    pass

class UnsupportedOperationError(AttributeError):
    """
    Raised when the target does not support an operation.

    This is the target's own fault relayed by the proxy, hence an `AttributeError` and not a `ProxyError`.
    The message is the one a direct access on the target would have produced.
    """
    def __init__(self, message: str, operation: str, target: Any):
        super().__init__(message)

        self.operation = operation
        self.target = target
        self.name = operation
        self.obj = target

class UnsupportedProtocolError(UnsupportedOperationError, TypeError):
    """
    Raised when the target does not implement a special method like `__len__` or `__iter__`.
    Being a `TypeError` as well, it matches what e.g. `len(target)` raises directly.
    """
    pass
