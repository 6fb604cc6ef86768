"""
Dynamic proxies and invocation interception
"""
from .errors import ProxyError, InvalidTargetError, UnsupportedOperationError, UnsupportedProtocolError, RecordFrozenError, DoubleForwardError, NoReturnValueError, HandlerReentrancyError
from .operation import Operation, OperationKind, OperationResolver, Invokable
from .invocation import Invocation, InvocationSnapshot, UNSET
from .handler import InvocationHandler, ObservingHandler, DelegatingHandler, observing, delegating
from .proxy import DynamicProxy, create_proxy, is_proxy, invoke, get_target, get_handler, set_handler, add_listener, remove_listener, observe, delegate

__all__ = [
    # errors

    "ProxyError",
    "InvalidTargetError",
    "UnsupportedOperationError",
    "UnsupportedProtocolError",
    "RecordFrozenError",
    "DoubleForwardError",
    "NoReturnValueError",
    "HandlerReentrancyError",

    # operation

    "Operation",
    "OperationKind",
    "OperationResolver",
    "Invokable",

    # invocation

    "Invocation",
    "InvocationSnapshot",
    "UNSET",

    # handler

    "InvocationHandler",
    "ObservingHandler",
    "DelegatingHandler",
    "observing",
    "delegating",

    # proxy

    "DynamicProxy",
    "create_proxy",
    "is_proxy",
    "invoke",
    "get_target",
    "get_handler",
    "set_handler",
    "add_listener",
    "remove_listener",
    "observe",
    "delegate",
]
