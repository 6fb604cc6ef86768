"""
Configuration management. Sources deliver nested dicts that are merged in registration order,
values are addressed by dotted paths.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, Optional, Type, TypeVar

from dotenv import dotenv_values

T = TypeVar("T")

class ConfigurationException(Exception):
    """
    Exception raised for errors in the configuration.
    """
    pass

def merge_dicts(a: dict, b: dict) -> dict:
    """
    return a new dict with the values of b recursively merged into a copy of a
    """
    result = a.copy()
    for key, b_val in b.items():
        a_val = result.get(key)
        if isinstance(a_val, dict) and isinstance(b_val, dict):
            result[key] = merge_dicts(a_val, b_val)
        else:
            result[key] = b_val

    return result

class ConfigurationManager:
    """
    Central class that merges the values of all registered sources.
    """
    # static data

    logger = logging.getLogger(__name__)

    # constructor

    def __init__(self, *sources: ConfigurationSource):
        self.sources : list[ConfigurationSource] = []
        self._data : Dict[str, Any] = dict()
        self.coercions : Dict[Type, Callable[[Any], Any]] = {
            int: int,
            float: float,
            bool: lambda v: str(v).lower() in ("1", "true", "yes", "on"),
            str: str,
        }

        for source in sources:
            self.register(source)

    # public

    def register(self, source: ConfigurationSource) -> ConfigurationManager:
        self.sources.append(source)

        return self

    def load(self) -> ConfigurationManager:
        self._data = dict()
        for source in self.sources:
            ConfigurationManager.logger.debug(f"load configuration from {source.__class__.__name__}")

            self._data = merge_dicts(self._data, source.load())

        return self

    def get(self, path: str, type: Type[T], default=None) -> T:
        def value(path: str, default=None):
            current = self._data
            for key in path.split("."):
                if not isinstance(current, dict) or key not in current:
                    return default

                current = current[key]

            return current

        v = value(path, default)

        if v is None or isinstance(v, type):
            return v

        coercion = self.coercions.get(type)
        if coercion is None:
            raise ConfigurationException(f"unknown coercion to {type}")

        try:
            return coercion(v)
        except (TypeError, ValueError) as e:
            raise ConfigurationException(f"cannot convert {path}={v!r} to {type.__name__}") from e

class ConfigurationSource:
    """
    A source of configuration values.
    """
    def load(self) -> dict:
        return {}

class DictConfigurationSource(ConfigurationSource):
    """
    A source that delivers a fixed dict.
    """
    # constructor

    def __init__(self, values: dict):
        self.values = values

    # implement

    def load(self) -> dict:
        return self.values

class EnvConfigurationSource(ConfigurationSource):
    """
    A source that covers the process environment, supplemented by the values of a `.env` file.
    Variables of the process environment win over the file, which is read without modifying `os.environ`.
    Keys containing '.' or '/' are exploded into nested dicts, e.g. `interpose.trace` or `interpose/trace`.
    """
    # constructor

    def __init__(self, dotenv_path: Optional[str] = None, dotenv: bool = True):
        """
        Args:
            dotenv_path: the `.env` file, None to search for one
            dotenv: if False, no file is read at all
        """
        self.dotenv_path = dotenv_path
        self.dotenv = dotenv

    # implement

    def load(self) -> dict:
        def explode_key(key, value):
            parts = key.replace('/', '.').split('.')
            d = current = {}
            for part in parts[:-1]:
                current[part] = {}
                current = current[part]
            current[parts[-1]] = value
            return d

        variables = {}
        if self.dotenv:
            variables = {key: value for key, value in dotenv_values(self.dotenv_path).items() if value is not None}

        variables.update(os.environ)

        exploded = {}

        for key, value in variables.items():
            if '.' in key or '/' in key:
                exploded = merge_dicts(exploded, explode_key(key, value))
            else:
                exploded[key] = value

        return exploded
