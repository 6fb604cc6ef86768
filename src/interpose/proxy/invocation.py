"""
The per call state of an intercepted operation and its immutable snapshot.
"""
from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Sequence, TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, Field

from interpose.util import StringBuilder

from .errors import DoubleForwardError, RecordFrozenError
from .operation import Operation, OperationResolver, UNSET

if TYPE_CHECKING:
    from .proxy import DynamicProxy


class Invocation:
    """
    Mutable state of a single intercepted call: the resolved operation, the arguments and the return value.

    A handler may modify the arguments, redirect the `target`, call `forward()` once or set the `return_value`
    directly. As soon as the invocation is forwarded or the call has completed, it is frozen and every further
    mutation raises a `RecordFrozenError`.
    """
    __slots__ = [
        "proxy",
        "operation",
        "thread",
        "_resolver",
        "_target",
        "_value",
        "_args",
        "_kwargs",
        "_return_value",
        "_forwarded",
        "_frozen",
    ]

    # constructor

    def __init__(self, proxy: Optional[DynamicProxy], operation: Operation, target: Any, args: Sequence[Any] = (), kwargs: Optional[Mapping[str, Any]] = None, resolver: Optional[OperationResolver] = None, value: Any = UNSET):
        self.proxy = proxy
        self.operation = operation
        self.thread = threading.current_thread().name
        self._resolver = resolver or OperationResolver()
        self._target = target
        self._value = value
        self._args : Sequence[Any] = list(args)
        self._kwargs : Mapping[str, Any] = dict(kwargs or {})
        self._return_value : Any = UNSET
        self._forwarded = False
        self._frozen = False

    # internal

    def _check_mutable(self, what: str):
        if self._frozen:
            raise RecordFrozenError(f"cannot modify {what} of {self.operation}, the invocation is frozen")

    # properties

    @property
    def target(self) -> Any:
        return self._target

    @target.setter
    def target(self, target: Any):
        self._check_mutable("the target")
        self._target = target
        self._value = UNSET

    @property
    def args(self) -> Sequence[Any]:
        """
        the positional arguments, a list until the invocation is frozen, a tuple afterwards
        """
        return self._args

    @args.setter
    def args(self, args: Sequence[Any]):
        self._check_mutable("the arguments")
        self._args = list(args)

    @property
    def kwargs(self) -> Mapping[str, Any]:
        return self._kwargs

    @kwargs.setter
    def kwargs(self, kwargs: Mapping[str, Any]):
        self._check_mutable("the keyword arguments")
        self._kwargs = dict(kwargs)

    @property
    def return_value(self) -> Any:
        """
        the return value or UNSET
        """
        return self._return_value

    @return_value.setter
    def return_value(self, value: Any):
        self._check_mutable("the return value")
        self._return_value = value

    @property
    def has_return_value(self) -> bool:
        return self._return_value is not UNSET

    @property
    def forwarded(self) -> bool:
        return self._forwarded

    @property
    def frozen(self) -> bool:
        return self._frozen

    # public

    def freeze(self) -> Invocation:
        if not self._frozen:
            self._frozen = True
            self._args = tuple(self._args)
            self._kwargs = MappingProxyType(dict(self._kwargs))

        return self

    def forward(self) -> Any:
        """
        Execute the operation on the target with the current arguments and store the result as return value.
        Exceptions raised by the target are propagated unchanged.

        Returns:
            the result of the target

        Raises:
            DoubleForwardError: if the invocation has already been forwarded
            RecordFrozenError: if the invocation is frozen
        """
        if self._forwarded:
            raise DoubleForwardError(f"{self.operation} has already been forwarded")

        self._check_mutable("the forwarding state")

        self._forwarded = True
        self.freeze()

        self._return_value = self._resolver.execute(self._target, self.operation, self._args, self._kwargs, self._value)

        return self._return_value

    def proceed(self) -> Any:
        return self.forward()

    def snapshot(self, exception: Optional[BaseException] = None) -> InvocationSnapshot:
        """
        Freeze the invocation and return an immutable copy.

        Args:
            exception: the exception that terminated the call, if any
        """
        self.freeze()

        return InvocationSnapshot(
            operation=self.operation,
            args=tuple(self._args),
            kwargs=dict(self._kwargs),
            return_value=self._return_value,
            forwarded=self._forwarded,
            exception=exception,
            thread=self.thread
        )

    def __str__(self):
        return f"Invocation({self.operation}, forwarded={self._forwarded})"

class InvocationSnapshot(BaseModel):
    """
    Immutable copy of a completed invocation, handed to listeners.
    """
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    operation: Operation
    args: tuple = ()
    kwargs: Dict[str, Any] = Field(default_factory=dict)
    return_value: Any = UNSET
    forwarded: bool = False
    exception: Optional[BaseException] = None
    thread: str = ""

    # public

    @property
    def has_return_value(self) -> bool:
        return self.return_value is not UNSET

    @property
    def succeeded(self) -> bool:
        return self.exception is None

    def __str__(self):
        builder = StringBuilder()

        builder.append(self.operation.name).append("(")
        builder.join(", ", [repr(arg) for arg in self.args] + [f"{key}={value!r}" for key, value in self.kwargs.items()])
        builder.append(")")

        if self.exception is not None:
            builder.append(" raised ").append(repr(self.exception))
        elif self.has_return_value:
            builder.append(" -> ").append(repr(self.return_value))

        return str(builder)
