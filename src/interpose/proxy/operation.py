"""
Operations and their resolution against a target.

An `Operation` identifies what was invoked on a proxy: a name, a kind ( call, attribute read, write or delete )
and - if the target's class declares it - the method descriptor that carries the signature.
The `OperationResolver` decides whether a target supports an operation and executes it on forwarding.
"""
from __future__ import annotations

import inspect
import logging
from abc import ABC, abstractmethod
from enum import Enum, auto
from inspect import Signature
from typing import Any, Callable, Mapping, Optional, Sequence, Tuple

from interpose.reflection import TypeDescriptor, get_safe_signature
from interpose.util import StringBuilder

from .errors import UnsupportedOperationError, UnsupportedProtocolError


class _Unset:
    """
    marker for a value that was never set or looked up
    """
    __slots__ = []

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)

        return cls._instance

    def __bool__(self):
        return False

    def __repr__(self):
        return "UNSET"

    def __reduce__(self):
        return (_Unset, ())

UNSET = _Unset()

class OperationKind(Enum):
    CALL = auto()
    GET = auto()
    SET = auto()
    DELETE = auto()

class Invokable(ABC):
    """
    Capability interface for targets that publish their operations explicitly instead of being reflected.
    Only the names of the returned mapping are supported.
    """
    @abstractmethod
    def operations(self) -> Mapping[str, Callable]:
        pass

class Operation:
    """
    Immutable identifier of an invoked capability. Two operations are equal if name and kind are equal.
    """
    __slots__ = [
        "name",
        "kind",
        "method",
        "signature"
    ]

    # constructor

    def __init__(self, name: str, kind: OperationKind = OperationKind.CALL, method: Optional[TypeDescriptor.MethodDescriptor] = None, signature: Optional[Signature] = None):
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "kind", kind)
        object.__setattr__(self, "method", method)
        object.__setattr__(self, "signature", signature if signature is not None or method is None else method.signature)

    # public

    @property
    def arity(self) -> Optional[int]:
        """
        the number of declared parameters without `self`, or None if unknown
        """
        if self.method is not None:
            return self.method.get_arity()

        if self.signature is not None:
            return len([name for name in self.signature.parameters if name != "self"])

        return None

    # object

    def __setattr__(self, key, value):
        raise AttributeError(f"{self.__class__.__name__} is immutable")

    def __eq__(self, other):
        if not isinstance(other, Operation):
            return NotImplemented

        return self.name == other.name and self.kind is other.kind

    def __hash__(self):
        return hash((self.name, self.kind))

    def __str__(self):
        builder = StringBuilder()

        if self.kind is OperationKind.CALL:
            builder.append(self.name).append("(")
            if self.signature is not None:
                builder.join(", ", [name for name in self.signature.parameters if name != "self"])
            else:
                builder.append("...")
            builder.append(")")
        else:
            builder.append(self.kind.name.lower()).append(" ").append(self.name)

        return str(builder)

    def __repr__(self):
        return f"Operation({self.name!r}, {self.kind.name})"

# the messages of the TypeErrors the interpreter raises if an object lacks a special method

_PROTOCOL_MESSAGES = {
    "__call__": "'{type}' object is not callable",
    "__len__": "object of type '{type}' has no len()",
    "__iter__": "'{type}' object is not iterable",
    "__next__": "'{type}' object is not an iterator",
    "__reversed__": "'{type}' object is not reversible",
    "__contains__": "argument of type '{type}' is not iterable",
    "__getitem__": "'{type}' object is not subscriptable",
    "__setitem__": "'{type}' object does not support item assignment",
    "__delitem__": "'{type}' object does not support item deletion",
    "__enter__": "'{type}' object does not support the context manager protocol",
    "__exit__": "'{type}' object does not support the context manager protocol (missed __exit__ method)",
}

class OperationResolver:
    """
    Resolves operations against targets, either via the `Invokable` table or via attribute lookup.

    Resolving evaluates a target attribute only if the name can't be found statically. Names that are computed by
    a `__getattr__` of the target are resolved as attribute reads and evaluated on forwarding only.
    """
    # static data

    logger = logging.getLogger(__name__)

    # internal

    def _find_static(self, target: Any, name: str) -> Any:
        try:
            return inspect.getattr_static(target, name)
        except AttributeError:
            return UNSET

    def _is_dynamic(self, target: Any) -> bool:
        return self._find_static(type(target), "__getattr__") is not UNSET

    def _classify_static(self, static: Any) -> OperationKind:
        if isinstance(static, (staticmethod, classmethod)):
            return OperationKind.CALL

        # properties and slots are read without being evaluated

        if inspect.isdatadescriptor(static) and not callable(static):
            return OperationKind.GET

        return OperationKind.CALL if callable(static) else OperationKind.GET

    def _describe(self, target: Any, name: str, kind: OperationKind, value: Any = UNSET) -> Operation:
        if isinstance(target, Invokable):
            return Operation(name, kind, signature=get_safe_signature(value) if value is not UNSET else None)

        method = TypeDescriptor.for_type(type(target)).get_method(name)
        if method is None and kind is OperationKind.CALL and value is not UNSET:
            return Operation(name, kind, signature=get_safe_signature(value))

        return Operation(name, kind, method)

    # public

    def unsupported(self, target: Any, name: str, cause: Optional[AttributeError] = None) -> UnsupportedOperationError:
        """
        return the error that reports the name as unsupported by the target
        """
        if name in _PROTOCOL_MESSAGES:
            message = _PROTOCOL_MESSAGES[name].format(type=type(target).__name__)
        elif cause is not None:
            message = str(cause)
        elif isinstance(target, Invokable):
            message = f"'{type(target).__name__}' object does not support operation '{name}'"
        else:
            message = f"'{type(target).__name__}' object has no attribute '{name}'"

        OperationResolver.logger.debug(f"unsupported operation {name} on {type(target).__qualname__}")

        if name.startswith("__") and name.endswith("__"):
            return UnsupportedProtocolError(message, name, target)

        return UnsupportedOperationError(message, name, target)

    def lookup(self, target: Any, name: str) -> Any:
        """
        return the value or callable the target provides for the name

        Raises:
            UnsupportedOperationError: if the target does not provide the name
        """
        if isinstance(target, Invokable):
            operations = target.operations()
            if name not in operations:
                raise self.unsupported(target, name)

            return operations[name]

        try:
            return getattr(target, name)
        except AttributeError as e:
            raise self.unsupported(target, name, e) from e

    def supports(self, target: Any, name: str) -> bool:
        if isinstance(target, Invokable):
            return name in target.operations()

        if self._find_static(target, name) is not UNSET:
            return True

        try:
            self.lookup(target, name)
        except UnsupportedOperationError:
            return False

        return True

    def bind(self, target: Any, name: str, kind: Optional[OperationKind] = None) -> Tuple[Operation, Any]:
        """
        Resolve the named operation against the target.

        Args:
            target: the target
            name: the operation name
            kind: the operation kind, None to classify the attribute

        Returns:
            the operation and the value that had to be looked up on the target while resolving, or UNSET.
            Forwarding reuses that value, so that a call evaluates the target attribute at most once.

        Raises:
            UnsupportedOperationError: if the target does not support the operation
        """
        if kind in (OperationKind.SET, OperationKind.DELETE):
            return self._describe(target, name, kind), UNSET

        if isinstance(target, Invokable):
            value = self.lookup(target, name)

            return self._describe(target, name, kind or OperationKind.CALL, value), value

        static = self._find_static(target, name)
        if static is not UNSET:
            return self._describe(target, name, kind or self._classify_static(static), static), UNSET

        if kind is not OperationKind.CALL and self._is_dynamic(target):
            return Operation(name, OperationKind.GET), UNSET

        value = self.lookup(target, name)
        if kind is None:
            kind = OperationKind.CALL if callable(value) else OperationKind.GET

        return self._describe(target, name, kind, value), value

    def resolve(self, target: Any, name: str, kind: Optional[OperationKind] = None) -> Operation:
        """
        Resolve the named operation against the target.

        Raises:
            UnsupportedOperationError: if the target does not support the operation
        """
        return self.bind(target, name, kind)[0]

    def classify(self, target: Any, name: str) -> OperationKind:
        """
        Decide whether an attribute access means a call or a read. Data descriptors like properties are
        classified without being evaluated, so that reading them stays subject to interception.
        """
        return self.bind(target, name)[0].kind

    def execute(self, target: Any, operation: Operation, args: Sequence[Any], kwargs: Mapping[str, Any], value: Any = UNSET) -> Any:
        """
        Execute the operation on the target. Failures of the target propagate unchanged.

        Args:
            value: the callable or value already looked up by `bind`, UNSET to look it up now
        """
        kind = operation.kind
        if kind is OperationKind.CALL:
            return (value if value is not UNSET else self.lookup(target, operation.name))(*args, **kwargs)
        elif kind is OperationKind.GET:
            return value if value is not UNSET else self.lookup(target, operation.name)
        elif kind is OperationKind.SET:
            setattr(target, operation.name, *args)
            return None
        else:
            delattr(target, operation.name)
            return None
