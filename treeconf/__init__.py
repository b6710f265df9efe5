from __future__ import annotations

"""
treeconf - Hierarchical configuration management.

This package provides:
- ConfigManager: orchestrates loading, merging and validating configuration.
- Config: read-only configuration object with attribute-style access.
- HierarchicalConfiguration: node tree addressed by keys, firing change events.
- XMLBeanDeclaration / BeanHelper: create objects declared in a configuration.
- Built-in sources: dict, file, environment variables.
"""

from .beans import BeanFactory, BeanHelper, DefaultBeanFactory
from .declaration import BeanDeclaration, Multiple, Single, XMLBeanDeclaration
from .events import ConfigurationEvent, EventSource, EventType
from .exceptions import (
    AmbiguousKeyError,
    ConfigSourceError,
    ConfigurationError,
    ConfigurationRuntimeError,
    ConversionError,
    MissingKeyError,
    ValidationError,
)
from .hierarchical import HierarchicalConfiguration, SubnodeConfiguration
from .manager import Config, ConfigManager
from .sources import ConfigSource, DictSource, EnvSource, FileSource
from .tree import ConfigurationNode, DefaultExpressionEngine, NodeAddData

__all__ = [
    "AmbiguousKeyError",
    "BeanDeclaration",
    "BeanFactory",
    "BeanHelper",
    "Config",
    "ConfigManager",
    "ConfigSource",
    "ConfigSourceError",
    "ConfigurationError",
    "ConfigurationEvent",
    "ConfigurationNode",
    "ConfigurationRuntimeError",
    "ConversionError",
    "DefaultBeanFactory",
    "DefaultExpressionEngine",
    "DictSource",
    "EnvSource",
    "EventSource",
    "EventType",
    "FileSource",
    "HierarchicalConfiguration",
    "MissingKeyError",
    "Multiple",
    "NodeAddData",
    "Single",
    "SubnodeConfiguration",
    "ValidationError",
    "XMLBeanDeclaration",
]
