"""
Invocation handlers. A handler is any callable accepting an `Invocation`, subclasses of `InvocationHandler` included.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

from .invocation import Invocation
from .operation import Operation, OperationKind, OperationResolver


class InvocationHandler(ABC):
    """
    Base class for handlers implemented as classes.
    """
    @abstractmethod
    def invoke(self, invocation: Invocation) -> None:
        pass

    def classify(self, name: str) -> Optional[OperationKind]:
        """
        return the kind of an operation the proxy claims although its target lacks it, None for a method call
        """
        return None

    def __call__(self, invocation: Invocation) -> None:
        self.invoke(invocation)

class ObservingHandler(InvocationHandler):
    """
    Forwards every invocation and reports operation, arguments and result afterwards.
    """
    # constructor

    def __init__(self, callback: Callable[[Operation, Sequence[Any], Any], None]):
        self.callback = callback

    # implement

    def invoke(self, invocation: Invocation) -> None:
        invocation.forward()

        self.callback(invocation.operation, invocation.args, invocation.return_value)

class DelegatingHandler(InvocationHandler):
    """
    Redirects every operation the delegate supports to the delegate, everything else reaches the target.
    """
    # constructor

    def __init__(self, delegate: Any, resolver: Optional[OperationResolver] = None):
        self.delegate = delegate
        self.resolver = resolver or OperationResolver()

    # public

    def responds(self, name: str, responds: bool) -> bool:
        return responds or self.resolver.supports(self.delegate, name)

    def classify(self, name: str) -> Optional[OperationKind]:
        if self.resolver.supports(self.delegate, name):
            return self.resolver.classify(self.delegate, name)

        return None

    # implement

    def invoke(self, invocation: Invocation) -> None:
        if self.resolver.supports(self.delegate, invocation.operation.name):
            invocation.target = self.delegate

def observing(callback: Callable[[Operation, Sequence[Any], Any], None]) -> InvocationHandler:
    """
    return a handler that calls `callback(operation, args, return_value)` after each successful forwarding
    """
    return ObservingHandler(callback)

def delegating(delegate: Any) -> DelegatingHandler:
    """
    return a handler that routes the operations supported by `delegate` to it
    """
    return DelegatingHandler(delegate)
