from __future__ import annotations

"""
Bean declarations: descriptions of objects to be created, read from a
hierarchical configuration.

A declaration in an XML document looks like this::

    <personBean config-class="my.model.PersonBean"
        lastName="Doe" firstName="John">
        <address config-class="my.model.AddressBean"
            street="21st street 11" zip="1234" city="TestCity"/>
    </personBean>

Reserved attributes (prefix ``config-``) carry meta data:

- ``config-class``: dotted path of the class to instantiate;
- ``config-factory``: name of a registered bean factory;
- ``config-factoryParam``: a parameter passed to that factory.

All other attributes are simple properties of the bean. Child elements are
complex properties, declared in the same format.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Tuple, Union

from .exceptions import AmbiguousKeyError, ConfigurationRuntimeError
from .hierarchical import HierarchicalConfiguration, SubnodeConfiguration
from .tree import ConfigurationNode

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "config-"
ATTR_PREFIX = "[@" + RESERVED_PREFIX
ATTR_BEAN_CLASS = ATTR_PREFIX + "class]"
ATTR_BEAN_FACTORY = ATTR_PREFIX + "factory]"
ATTR_FACTORY_PARAM = ATTR_PREFIX + "factoryParam]"


class BeanDeclaration(ABC):
    """The data needed to create and initialize a bean."""

    @property
    @abstractmethod
    def bean_class_name(self) -> str | None:
        """Dotted path of the bean class, None if not declared."""

    @property
    @abstractmethod
    def bean_factory_name(self) -> str | None:
        """Name of the factory to use, None for the default factory."""

    @property
    @abstractmethod
    def bean_factory_parameter(self) -> Any | None:
        """Optional parameter for the bean factory."""

    @property
    @abstractmethod
    def bean_properties(self) -> Dict[str, Any]:
        """Simple properties to set on the bean."""

    @property
    @abstractmethod
    def nested_bean_declarations(self) -> Dict[str, "NestedDeclaration"]:
        """Declarations of complex properties, keyed by property name."""


@dataclass(frozen=True)
class Single:
    """A complex property declared by exactly one child element."""

    declaration: BeanDeclaration


@dataclass(frozen=True)
class Multiple:
    """A complex property declared by several same-named child elements, in document order."""

    declarations: Tuple[BeanDeclaration, ...]


NestedDeclaration = Union[Single, Multiple]


class XMLBeanDeclaration(BeanDeclaration):
    """
    BeanDeclaration backed by a node of a hierarchical configuration.

    Use from_key() to look a declaration up in a configuration; the
    constructor takes an already scoped view and its root node.

    The view is normalised so that missing keys yield None and keys are
    parsed by the default expression engine, whatever engine the
    enclosing configuration uses.
    """

    def __init__(self, configuration: SubnodeConfiguration, node: ConfigurationNode):
        if configuration is None:
            raise ValueError("Configuration must not be None.")
        if node is None:
            raise ValueError("Node must not be None.")

        self._configuration = configuration
        self._node = node
        _init_subnode_configuration(configuration)

    @classmethod
    def from_key(
        cls,
        config: HierarchicalConfiguration,
        key: str | None = None,
        *,
        optional: bool = False,
    ) -> "XMLBeanDeclaration":
        """
        Create a declaration for the node selected by key.

        Without a key the root of config holds the declaration. The key must
        select exactly one node. If optional is set, a key that selects no
        node yields a declaration over an empty node instead; a key that
        selects several nodes is an error in both modes.

        :raises AmbiguousKeyError: if key does not select exactly one node.
        """
        if config is None:
            raise ValueError("Configuration must not be None.")

        matches = config.get_max_index(key) + 1
        if matches == 0 and optional:
            logger.debug("No bean declaration at %r, using an empty declaration", key)
            node = ConfigurationNode()
            return cls(SubnodeConfiguration(config, node), node)
        if matches != 1:
            raise AmbiguousKeyError(
                f"Bean declaration key must select exactly one node (found {matches}): {key!r}"
            )

        view = config.configuration_at(key)
        logger.debug("Creating bean declaration for key %r", key)
        return cls(view, view.root_node)

    @property
    def configuration(self) -> SubnodeConfiguration:
        return self._configuration

    @property
    def node(self) -> ConfigurationNode:
        return self._node

    @property
    def bean_class_name(self) -> str | None:
        return self._configuration.get_string(ATTR_BEAN_CLASS)

    @property
    def bean_factory_name(self) -> str | None:
        return self._configuration.get_string(ATTR_BEAN_FACTORY)

    @property
    def bean_factory_parameter(self) -> Any | None:
        return self._configuration.get_property(ATTR_FACTORY_PARAM)

    @property
    def bean_properties(self) -> Dict[str, Any]:
        """Values of all attributes that are not reserved, interpolated."""
        return {
            attr.name: self.interpolate(attr.value)
            for attr in self._node.attributes
            if not self.is_reserved_node(attr)
        }

    @property
    def nested_bean_declarations(self) -> Dict[str, NestedDeclaration]:
        """
        Declarations for the child elements of this declaration's node.

        A name used by one child maps to a Single, a name shared by several
        children maps to a Multiple.
        """
        nested: Dict[str, NestedDeclaration] = {}
        for child in self._node.children:
            if self.is_reserved_node(child):
                continue

            declaration = self.create_bean_declaration(child)
            match nested.get(child.name):
                case None:
                    nested[child.name] = Single(declaration)
                case Single(declaration=first):
                    nested[child.name] = Multiple((first, declaration))
                case Multiple(declarations=previous):
                    nested[child.name] = Multiple(previous + (declaration,))
        return nested

    def interpolate(self, value: Any) -> Any:
        """Interpolate value against the configuration enclosing this declaration."""
        return self._configuration.parent.interpolate(value)

    def is_reserved_node(self, node: ConfigurationNode) -> bool:
        """Attributes without a name or starting with the reserved prefix are meta data."""
        return node.attribute and (node.name is None or node.name.startswith(RESERVED_PREFIX))

    def create_bean_declaration(self, node: ConfigurationNode) -> BeanDeclaration:
        """
        Create the declaration for a child node of this declaration's node.

        The child is matched against the views for children of the same
        name. This assumes the tree is not modified in the meantime.

        :raises ConfigurationRuntimeError: if no view is rooted at node.
        """
        for view in self._configuration.child_configurations(node.name):
            if view.root_node is node:
                return self.build_nested_declaration(view, node)
        raise ConfigurationRuntimeError(f"Unable to match node for {node.name}")

    def build_nested_declaration(
        self, configuration: SubnodeConfiguration, node: ConfigurationNode
    ) -> BeanDeclaration:
        """Hook for subclasses; creates a declaration of the same type by default."""
        logger.debug("Creating nested bean declaration for node %r", node.name)
        return type(self)(configuration, node)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} node={self._node.name!r} class={self.bean_class_name!r}>"


def _init_subnode_configuration(configuration: SubnodeConfiguration) -> None:
    configuration.throw_exception_on_missing = False
    configuration.expression_engine = None
