"""
Dynamic proxies that forward every operation to a target and let a handler intercept each call.
"""
from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional, Tuple, Union

from interpose.configuration import ProxySettings
from interpose.threading import CallDepth

from .errors import InvalidTargetError, HandlerReentrancyError, NoReturnValueError, UnsupportedOperationError
from .handler import DelegatingHandler, InvocationHandler, observing
from .invocation import Invocation, InvocationSnapshot
from .operation import Operation, OperationKind, OperationResolver, UNSET

Handler = Callable[[Invocation], Any]
Listener = Callable[[InvocationSnapshot], Any]
Responds = Callable[[str, bool], bool]

logger = logging.getLogger(__name__)

class _ProxyState:
    """
    everything a proxy knows about itself, kept out of the attribute namespace that is forwarded to the target
    """
    __slots__ = [
        "target",
        "handler",
        "responds",
        "settings",
        "resolver",
        "listeners",
        "lock",
        "depth"
    ]

    def __init__(self, target: Any, handler: Optional[Handler], responds: Optional[Responds], settings: ProxySettings, resolver: OperationResolver):
        self.target = target
        self.handler = handler
        self.responds = responds
        self.settings = settings
        self.resolver = resolver
        self.listeners : tuple[Listener, ...] = ()
        self.lock = threading.RLock()
        self.depth = CallDepth()

    def get_handler(self) -> Optional[Handler]:
        if self.settings.lock_handler:
            with self.lock:
                return self.handler

        return self.handler

    def set_handler(self, handler: Optional[Handler]):
        if self.settings.lock_handler:
            with self.lock:
                self.handler = handler
        else:
            self.handler = handler

class DynamicProxy:
    """
    A DynamicProxy stands in for a target object. Every operation - method calls, attribute reads, writes and
    deletes, calls of the proxy itself and the container protocol - is resolved against the target and,
    if a handler is installed, passed as an `Invocation` to the handler first.

    The methods defined here shadow equally named attributes of the target. The module level functions
    `invoke`, `get_target`, ... reach the same behavior without any chance of a clash.

    Handler replacement is serialized with the handler reads of starting calls if `ProxySettings.lock_handler`
    is set. Otherwise callers need to synchronize `set_handler` with concurrent calls themselves.
    """
    __slots__ = [
        "__state"
    ]

    # constructor

    def __init__(self, target: Any, handler: Optional[Handler] = None, *, responds: Optional[Responds] = None, settings: Optional[ProxySettings] = None, resolver: Optional[OperationResolver] = None):
        """
        Creates a new proxy.

        Args:
            target: the target, must not be None
            handler: optional handler that intercepts every invocation
            responds: optional callable `(name, responds) -> bool` that may claim or deny support of operations
            settings: the settings, defaults to `ProxySettings.default()`
            resolver: the resolver used to look up operations on the target

        Raises:
            InvalidTargetError: if the target is None
        """
        if target is None:
            raise InvalidTargetError("a proxy requires a target")

        object.__setattr__(self, "_DynamicProxy__state", _ProxyState(
            target,
            handler,
            responds,
            settings or ProxySettings.default(),
            resolver or OperationResolver()
        ))

        if handler is not None:
            logger.debug(f"create proxy for {type(target).__qualname__} with handler {handler!r}")

    # internal

    def __resolve(self, name: str, kind: Optional[OperationKind]) -> Tuple[Operation, Any]:
        state = self.__state
        try:
            operation, value = state.resolver.bind(state.target, name, kind)
        except UnsupportedOperationError:
            if state.responds is not None and state.responds(name, False):
                handler = state.get_handler()
                if kind is None and isinstance(handler, InvocationHandler):
                    kind = handler.classify(name)

                return Operation(name, kind or OperationKind.CALL), UNSET

            raise

        if state.responds is not None and not state.responds(name, True):
            raise state.resolver.unsupported(state.target, name)

        return operation, value

    def __emit(self, invocation: Invocation, exception: Optional[BaseException]):
        state = self.__state

        invocation.freeze()

        if not state.listeners and not state.settings.trace:
            return

        snapshot = invocation.snapshot(exception)

        if state.settings.trace:
            logger.debug(f"{type(state.target).__qualname__}.{snapshot}")

        for listener in state.listeners:
            try:
                listener(snapshot)
            except Exception:
                logger.exception(f"listener {listener!r} failed for {snapshot.operation}")

    def __run(self, operation: Operation, value: Any, handler: Optional[Handler], args, kwargs) -> Any:
        state = self.__state
        invocation = Invocation(self, operation, state.target, args, kwargs, state.resolver, value)

        exception = None
        try:
            if handler is None:
                invocation.forward()
            else:
                handler(invocation)

                if not invocation.forwarded and not invocation.has_return_value:
                    invocation.forward()

            if not invocation.has_return_value:
                raise NoReturnValueError(f"{operation} completed without a return value")

            return invocation.return_value
        except BaseException as e:
            exception = e
            raise
        finally:
            self.__emit(invocation, exception)

    def __dispatch(self, operation: Operation, value: Any, args, kwargs) -> Any:
        state = self.__state

        handler = state.get_handler()
        if handler is None:
            return self.__run(operation, value, None, args, kwargs)

        with state.depth.enter(operation) as depth:
            if depth > state.settings.reentrancy_limit:
                raise HandlerReentrancyError(f"{operation} re-entered {type(state.target).__qualname__} proxy {depth} times")

            return self.__run(operation, value, handler, args, kwargs)

    # public

    def invoke(self, operation: Union[str, Operation], /, *args, **kwargs) -> Any:
        """
        Invoke an operation on the target, passing the invocation through the handler first.

        Args:
            operation: the name of a method or an `Operation` specifying name and kind
            *args: the positional arguments
            **kwargs: the keyword arguments

        Returns:
            the return value determined by the handler or the target

        Raises:
            UnsupportedOperationError: if the target does not support the operation
            HandlerReentrancyError: if the operation re-enters this proxy too deep while a handler is installed
            NoReturnValueError: if no return value was ever produced
        """
        if isinstance(operation, Operation):
            resolved, value = self.__resolve(operation.name, operation.kind)
        else:
            resolved, value = self.__resolve(operation, OperationKind.CALL)

        return self.__dispatch(resolved, value, args, kwargs)

    def get_target(self) -> Any:
        return self.__state.target

    def get_handler(self) -> Optional[Handler]:
        return self.__state.get_handler()

    def set_handler(self, handler: Optional[Handler]) -> None:
        """
        Replace the handler. Calls in flight keep the handler they started with.
        """
        logger.debug(f"set handler {handler!r} for {type(self.__state.target).__qualname__} proxy")

        self.__state.set_handler(handler)

    def add_listener(self, listener: Listener) -> None:
        """
        Register a callable that receives an `InvocationSnapshot` after every completed or failed call.
        """
        state = self.__state
        with state.lock:
            state.listeners = state.listeners + (listener,)

    def remove_listener(self, listener: Listener) -> None:
        state = self.__state
        with state.lock:
            state.listeners = tuple(l for l in state.listeners if l is not listener)

    # object

    def __getattr__(self, name: str) -> Any:
        if name == "_DynamicProxy__state":
            raise AttributeError(name)

        operation, value = self.__resolve(name, None)
        if operation.kind is OperationKind.GET:
            return self.__dispatch(operation, value, (), {})

        proxy = self

        def method(*args, **kwargs):
            return proxy.__dispatch(operation, value, args, kwargs)

        method.__name__ = name
        method.__qualname__ = f"{type(self.__state.target).__qualname__}.{name}"

        return method

    def __setattr__(self, name: str, value: Any) -> None:
        DynamicProxy.invoke(self, Operation(name, OperationKind.SET), value)

    def __delattr__(self, name: str) -> None:
        DynamicProxy.invoke(self, Operation(name, OperationKind.DELETE))

    def __reversed__(self):
        state = self.__state
        if state.resolver.supports(state.target, "__reversed__") or (state.responds is not None and state.responds("__reversed__", False)):
            return DynamicProxy.invoke(self, "__reversed__")

        # sequence protocol

        if not state.resolver.supports(state.target, "__getitem__"):
            raise state.resolver.unsupported(state.target, "__reversed__")

        return (self[index] for index in range(len(self) - 1, -1, -1))

    def __bool__(self):
        return bool(self.__state.target)

    def __dir__(self):
        return dir(self.__state.target)

    def __repr__(self):
        return f"DynamicProxy({self.__state.target!r})"

def _special(name: str):
    def method(self, *args, **kwargs):
        return DynamicProxy.invoke(self, name, *args, **kwargs)

    method.__name__ = name
    method.__qualname__ = f"DynamicProxy.{name}"

    return method

for _name in ("__call__", "__len__", "__iter__", "__next__", "__contains__", "__getitem__", "__setitem__", "__delitem__", "__enter__", "__exit__"):
    setattr(DynamicProxy, _name, _special(_name))

# functions

def create_proxy(target: Any, handler: Optional[Handler] = None, **kwargs) -> DynamicProxy:
    return DynamicProxy(target, handler, **kwargs)

def is_proxy(obj: Any) -> bool:
    return isinstance(obj, DynamicProxy)

def invoke(proxy: DynamicProxy, operation: Union[str, Operation], /, *args, **kwargs) -> Any:
    return DynamicProxy.invoke(proxy, operation, *args, **kwargs)

def get_target(proxy: DynamicProxy) -> Any:
    return DynamicProxy.get_target(proxy)

def get_handler(proxy: DynamicProxy) -> Optional[Handler]:
    return DynamicProxy.get_handler(proxy)

def set_handler(proxy: DynamicProxy, handler: Optional[Handler]) -> None:
    DynamicProxy.set_handler(proxy, handler)

def add_listener(proxy: DynamicProxy, listener: Listener) -> None:
    DynamicProxy.add_listener(proxy, listener)

def remove_listener(proxy: DynamicProxy, listener: Listener) -> None:
    DynamicProxy.remove_listener(proxy, listener)

def observe(target: Any, callback: Callable[[Operation, Any, Any], None], **kwargs) -> DynamicProxy:
    """
    Create a proxy that forwards every operation and reports `callback(operation, args, return_value)` afterwards.
    """
    return DynamicProxy(target, observing(callback), **kwargs)

def delegate(target: Any, override: Any, **kwargs) -> DynamicProxy:
    """
    Create a proxy that routes every operation `override` supports to it and the rest to the target.
    The proxy also claims the operations only `override` supports.
    """
    handler = DelegatingHandler(override)

    return DynamicProxy(target, handler, responds=handler.responds, **kwargs)
