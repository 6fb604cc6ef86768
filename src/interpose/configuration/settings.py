"""
Settings that control the behavior of proxies.
"""
from __future__ import annotations

import threading
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .configuration import ConfigurationManager, EnvConfigurationSource

_default : Optional["ProxySettings"] = None
_lock = threading.Lock()

class ProxySettings(BaseModel):
    """
    Settings of a proxy.

    Attributes:
        reentrancy_limit: the number of nested re-entries of the same operation on the same proxy,
            while a handler is installed, that are tolerated before a HandlerReentrancyError is raised
        lock_handler: if True, handler reads and replacements are serialized by an internal lock
        trace: if True, every snapshot is logged on debug level
    """
    model_config = ConfigDict(frozen=True)

    reentrancy_limit: int = Field(default=1, ge=0)
    lock_handler: bool = True
    trace: bool = False

    # class methods

    @classmethod
    def from_configuration(cls, manager: ConfigurationManager, prefix: str = "interpose") -> ProxySettings:
        """
        Create settings from the `<prefix>.*` values of a loaded ConfigurationManager, falling back to the defaults.
        """
        defaults = cls()

        return cls(
            reentrancy_limit=manager.get(f"{prefix}.reentrancy_limit", int, defaults.reentrancy_limit),
            lock_handler=manager.get(f"{prefix}.lock_handler", bool, defaults.lock_handler),
            trace=manager.get(f"{prefix}.trace", bool, defaults.trace),
        )

    @classmethod
    def default(cls) -> ProxySettings:
        """
        return the process wide settings, which are read from the `interpose.*` variables of the process environment
        on first access. No `.env` file is read, settings built with `from_configuration` can be installed with `set_default`.
        """
        global _default

        if _default is None:
            with _lock:
                if _default is None:
                    _default = cls.from_configuration(ConfigurationManager(EnvConfigurationSource(dotenv=False)).load())

        return _default

    @classmethod
    def set_default(cls, settings: Optional[ProxySettings]) -> None:
        """
        replace the process wide settings. None forces a reload from the environment on next access
        """
        global _default

        with _lock:
            _default = settings
