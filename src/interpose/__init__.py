"""
interpose - transparent runtime proxies with call interception
"""
from .proxy import *
from .proxy import __all__ as _proxy_all
from .configuration import ProxySettings

__all__ = _proxy_all + ["ProxySettings"]
