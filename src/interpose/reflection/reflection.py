"""
This module provides a TypeDescriptor class that allows introspection of Python classes and their methods.
It is used to describe the operations a proxy resolves, and caches the descriptors per class.
"""
from __future__ import annotations

import threading
from inspect import Signature, signature
from types import FunctionType
from typing import Callable, Type, Dict, Optional
from weakref import WeakKeyDictionary


def get_safe_signature(obj) -> Optional[Signature]:
    """
    return the signature of a callable or None, if it can't be determined ( e.g. for some builtins )
    """
    try:
        return signature(obj)
    except (TypeError, ValueError):
        return None

class TypeDescriptor:
    """
    This class provides a way to introspect the methods of Python classes.
    """
    # inner classes

    class MethodDescriptor:
        """
        This class represents a method of a class and its signature.
        """
        # constructor

        def __init__(self, cls, method: Callable):
            self.clazz = cls
            self.method = method
            self.signature : Optional[Signature] = get_safe_signature(method)

        # public

        def get_arity(self) -> Optional[int]:
            """
            return the number of declared parameters, not counting `self`, or None if the signature is unknown
            """
            if self.signature is None:
                return None

            return len([name for name in self.signature.parameters if name != "self"])

        def __str__(self):
            return f"Method({self.method.__name__})"

    # class properties

    _cache = WeakKeyDictionary()
    _lock = threading.RLock()

    # class methods

    @classmethod
    def for_type(cls, clazz: Type) -> TypeDescriptor:
        """
        Returns a TypeDescriptor for the given class, using a cache to avoid redundant introspection.
        """
        descriptor = cls._cache.get(clazz)
        if descriptor is None:
            with cls._lock:
                descriptor = cls._cache.get(clazz)
                if descriptor is None:
                    descriptor = TypeDescriptor(clazz)
                    cls._cache[clazz] = descriptor

        return descriptor

    # constructor

    def __init__(self, cls):
        self.cls = cls
        self.methods: Dict[str, TypeDescriptor.MethodDescriptor] = {}

        # check superclasses

        for super_type in [TypeDescriptor.for_type(x) for x in cls.__bases__ if not x is object]:
            self.methods = self.methods | super_type.methods

        # methods

        for name, member in self._get_local_members(cls):
            self.methods[name] = TypeDescriptor.MethodDescriptor(cls, member)

    # internal

    def _get_local_members(self, cls):
        return [
            (name, attr)
            for name, attr in cls.__dict__.items()
            if isinstance(attr, FunctionType)
        ]

    # public

    def get_method(self, name: str) -> Optional[TypeDescriptor.MethodDescriptor]:
        """
        Returns a MethodDescriptor for the method with the given name, inherited methods included.
        """
        return self.methods.get(name, None)

    def __str__(self):
        return f"TypeDescriptor({self.cls.__qualname__})"
