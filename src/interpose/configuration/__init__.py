"""
Configuration handling
"""
from .configuration import ConfigurationManager, ConfigurationSource, DictConfigurationSource, EnvConfigurationSource, ConfigurationException
from .settings import ProxySettings

__all__ = [
    "ConfigurationManager",
    "ConfigurationSource",
    "DictConfigurationSource",
    "EnvConfigurationSource",
    "ConfigurationException",
    "ProxySettings",
]
