from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Dict, Iterable, List, Optional

from .events import EventSource, EventType
from .exceptions import (
    AmbiguousKeyError,
    ConfigurationError,
    ConversionError,
    MissingKeyError,
)
from .interpolation import interpolate
from .tree import ConfigurationNode, DefaultExpressionEngine, NodeAddData
from .utils import parse_bool


# Conventions used by from_mapping() for nested mappings
ATTRIBUTE_MARKER = "@"
TEXT_KEY = "#text"


class HierarchicalConfiguration(EventSource):
    """
    Configuration stored as a tree of ConfigurationNode objects.

    Properties are addressed by keys which are evaluated by an expression
    engine (see DefaultExpressionEngine), e.g.::

        config.get_string("database.host(0)[@name]")

    Every mutating method fires a ConfigurationEvent before and after the
    change.
    """

    #: Engine used by all configurations without an explicitly set engine.
    default_expression_engine: DefaultExpressionEngine = DefaultExpressionEngine()

    def __init__(self, root: ConfigurationNode | None = None):
        super().__init__()
        self._root = root if root is not None else ConfigurationNode()
        self._expression_engine: Optional[DefaultExpressionEngine] = None
        self.throw_exception_on_missing = False

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "HierarchicalConfiguration":
        """
        Build a configuration from nested mappings.

        Keys become child nodes, list values become repeated children with
        the same name, keys starting with '@' become attributes and the key
        '#text' sets the value of the enclosing node.
        """
        root = ConfigurationNode()
        _populate(root, data)
        return cls(root)

    @property
    def root_node(self) -> ConfigurationNode:
        return self._root

    @property
    def expression_engine(self) -> DefaultExpressionEngine:
        if self._expression_engine is None:
            return HierarchicalConfiguration.default_expression_engine
        return self._expression_engine

    @expression_engine.setter
    def expression_engine(self, engine: DefaultExpressionEngine | None) -> None:
        # None falls back to the default engine
        self._expression_engine = engine

    # -- reading -----------------------------------------------------------

    def fetch_nodes(self, key: str | None) -> List[ConfigurationNode]:
        return self.expression_engine.query(self._root, key)

    def get_property(self, key: str | None) -> Any:
        """
        Return the raw value(s) stored under key.

        None if no node with a value matches, the value itself for exactly
        one match, a list of values otherwise.
        """
        values = [node.value for node in self.fetch_nodes(key) if node.value is not None]
        if not values:
            return None
        if len(values) == 1:
            return values[0]
        return values

    def contains_key(self, key: str) -> bool:
        return self.get_property(key) is not None

    def is_empty(self) -> bool:
        return not self._root.is_defined()

    def get_max_index(self, key: str | None) -> int:
        """Return the number of nodes matching key minus one (-1 if there are none)."""
        return len(self.fetch_nodes(key)) - 1

    def get_string(self, key: str, default: str | None = None) -> str | None:
        value = self._get_single(key, default)
        if value is None:
            return None
        return str(value)

    def get_int(self, key: str, default: int | None = None) -> int | None:
        value = self._get_single(key, default)
        if value is None or isinstance(value, int) and not isinstance(value, bool):
            return value
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ConversionError(f"Key {key!r} does not map to an int: {value!r}") from exc

    def get_float(self, key: str, default: float | None = None) -> float | None:
        value = self._get_single(key, default)
        if value is None:
            return None
        try:
            return float(value)
        except (TypeError, ValueError) as exc:
            raise ConversionError(f"Key {key!r} does not map to a float: {value!r}") from exc

    def get_bool(self, key: str, default: bool | None = None) -> bool | None:
        value = self._get_single(key, default)
        if value is None or isinstance(value, bool):
            return value
        result = parse_bool(str(value))
        if result is None:
            raise ConversionError(f"Key {key!r} does not map to a bool: {value!r}")
        return result

    def get_list(self, key: str, default: Iterable[Any] | None = None) -> List[Any]:
        """Return all values stored under key, interpolated."""
        value = self.get_property(key)
        if value is None:
            if default is not None:
                return list(default)
            if self.throw_exception_on_missing:
                raise MissingKeyError(f"Key {key!r} does not map to an existing value.")
            return []
        if not isinstance(value, (list, tuple)):
            value = [value]
        return [self.interpolate(v) for v in value]

    def get_keys(self, prefix: str | None = None) -> List[str]:
        """Return the keys of all nodes carrying a value, in document order."""
        engine = self.expression_engine
        keys: Dict[str, None] = {}

        def walk(node: ConfigurationNode, key: str) -> None:
            if node.value is not None and key:
                keys[key] = None
            for attr in node.attributes:
                keys[key + engine.attribute_key(engine.escape(attr.name or ""))] = None
            for child in node.children:
                name = engine.escape(child.name or "")
                walk(child, f"{key}{engine.property_delimiter}{name}" if key else name)

        if prefix:
            for node in self.fetch_nodes(prefix):
                walk(node, prefix)
        else:
            walk(self._root, "")
        return list(keys)

    def resolve_variable(self, name: str) -> Any:
        """Look up a variable for interpolation; the first value of a list wins."""
        value = self.get_property(name)
        if isinstance(value, (list, tuple)):
            return value[0] if value else None
        return value

    def interpolate(self, value: Any) -> Any:
        return interpolate(value, self)

    def _get_single(self, key: str, default: Any) -> Any:
        value = self.get_property(key)
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            if default is None and self.throw_exception_on_missing:
                raise MissingKeyError(f"Key {key!r} does not map to an existing value.")
            return default
        return self.interpolate(value)

    # -- sub configurations ------------------------------------------------

    def configuration_at(self, key: str | None) -> "SubnodeConfiguration":
        """
        Return a view rooted at the single node selected by key.

        :raises AmbiguousKeyError: if key selects no node or several nodes.
        """
        nodes = self.fetch_nodes(key)
        if len(nodes) != 1:
            raise AmbiguousKeyError(
                f"Passed in key must select exactly one node (found {len(nodes)}): {key!r}"
            )
        return self.create_subnode_configuration(nodes[0])

    def configurations_at(self, key: str | None) -> List["SubnodeConfiguration"]:
        return [self.create_subnode_configuration(node) for node in self.fetch_nodes(key)]

    def child_configurations(self, name: str | None) -> List["SubnodeConfiguration"]:
        """Return views for the root's children named exactly name (no key syntax)."""
        return [
            self.create_subnode_configuration(child)
            for child in self._root.children
            if child.name == name
        ]

    def create_subnode_configuration(self, node: ConfigurationNode) -> "SubnodeConfiguration":
        sub = SubnodeConfiguration(self, node)
        sub.expression_engine = self._expression_engine
        sub.throw_exception_on_missing = self.throw_exception_on_missing
        return sub

    # -- writing -----------------------------------------------------------

    def add_property(self, key: str, value: Any) -> None:
        """Add value(s) under key; existing values are kept."""
        self.expression_engine.prepare_add(self._root, key)
        self.fire_event(EventType.ADD_PROPERTY, key, value, True)
        self._add_property_direct(key, value)
        self.fire_event(EventType.ADD_PROPERTY, key, value, False)

    def set_property(self, key: str, value: Any) -> None:
        """
        Replace the value(s) stored under key.

        A list or tuple is spread over the nodes matching key; missing nodes
        are added, surplus nodes are cleared. None clears the property.
        """
        values = _as_values(value)
        nodes = self.fetch_nodes(key)
        if len(values) > len(nodes):
            self.expression_engine.prepare_add(self._root, key)

        self.fire_event(EventType.SET_PROPERTY, key, value, True)
        for node, v in zip(nodes, values):
            node.value = v
        for node in nodes[len(values):]:
            self._clear_node(node)
        if len(values) > len(nodes):
            self._add_property_direct(key, values[len(nodes):])
        self.fire_event(EventType.SET_PROPERTY, key, value, False)

    def clear_property(self, key: str) -> None:
        """Remove the values under key; nodes left without content are removed."""
        self.fire_event(EventType.CLEAR_PROPERTY, key, None, True)
        for node in self.fetch_nodes(key):
            self._clear_node(node)
        self.fire_event(EventType.CLEAR_PROPERTY, key, None, False)

    def clear_tree(self, key: str) -> None:
        """Remove the nodes selected by key including all of their children."""
        self.fire_event(EventType.CLEAR_TREE, key, None, True)
        nodes = self.fetch_nodes(key)
        for node in nodes:
            if node is self._root:
                self._reset_root()
            else:
                _detach(node)
        self.fire_event(EventType.CLEAR_TREE, key, nodes, False)

    def add_nodes(self, key: str | None, nodes: Iterable[ConfigurationNode]) -> None:
        """
        Append nodes (children or attributes) below the node selected by key.

        A key that selects no node is created first. The key is checked
        before anything is changed or any event is fired.
        """
        nodes = list(nodes)
        if not nodes:
            return

        parents = self.fetch_nodes(key)
        target: ConfigurationNode | None = None
        add_data: NodeAddData | None = None
        if len(parents) > 1:
            raise AmbiguousKeyError(
                f"Key for add_nodes() must select a single node (found {len(parents)}): {key!r}"
            )
        if parents:
            target = parents[0]
            is_attribute = target.attribute
        else:
            add_data = self.expression_engine.prepare_add(self._root, key)
            is_attribute = add_data.attribute
        if is_attribute:
            raise ConfigurationError(f"Cannot add nodes to attribute key {key!r}.")

        self.fire_event(EventType.ADD_NODES, key, nodes, True)
        if target is None:
            target = add_data.create()
        for node in nodes:
            if node.attribute:
                target.add_attribute(node)
            else:
                target.add_child(node)
        self.fire_event(EventType.ADD_NODES, key, nodes, False)

    def clear(self) -> None:
        """Remove all content of this configuration."""
        self.fire_event(EventType.CLEAR, None, None, True)
        self._reset_root()
        self.fire_event(EventType.CLEAR, None, None, False)

    def _add_property_direct(self, key: str, value: Any) -> None:
        engine = self.expression_engine
        for v in _as_values(value):
            engine.prepare_add(self._root, key).create(v)

    def _clear_node(self, node: ConfigurationNode) -> None:
        node.value = None
        # Drop the node and any ancestors that became empty
        while node is not self._root and node.parent is not None and not node.is_defined():
            parent = node.parent
            _detach(node)
            node = parent

    def _reset_root(self) -> None:
        self._root.remove_children()
        self._root.remove_attributes()
        self._root.value = None

    def __repr__(self) -> str:
        keys = self.get_keys()
        keys_preview = ", ".join(keys[:5])
        more = "..." if len(keys) > 5 else ""
        return f"<{type(self).__name__} keys=[{keys_preview}{more}]>"


class SubnodeConfiguration(HierarchicalConfiguration):
    """
    A view on a subtree of another hierarchical configuration.

    The view shares its nodes with the parent configuration, so updates are
    visible in both. Variables are interpolated against the parent.
    """

    def __init__(self, parent: HierarchicalConfiguration, root: ConfigurationNode):
        if parent is None:
            raise ValueError("Parent configuration must not be None.")
        if root is None:
            raise ValueError("Root node must not be None.")
        super().__init__(root)
        self._parent = parent

    @property
    def parent(self) -> HierarchicalConfiguration:
        return self._parent

    def interpolate(self, value: Any) -> Any:
        return self._parent.interpolate(value)


def _as_values(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _detach(node: ConfigurationNode) -> None:
    parent = node.parent
    if parent is None:
        return
    if node.attribute:
        parent.remove_attribute(node)
    else:
        parent.remove_child(node)


def _populate(node: ConfigurationNode, data: Mapping[str, Any]) -> None:
    for key, value in data.items():
        key = str(key)
        if key == TEXT_KEY:
            node.value = value
            continue

        values = value if isinstance(value, list) else [value]
        if key.startswith(ATTRIBUTE_MARKER):
            name = key[len(ATTRIBUTE_MARKER):]
            for v in values:
                node.add_attribute(ConfigurationNode(name, v))
            continue

        for v in values:
            child = node.add_child(ConfigurationNode(key))
            if isinstance(v, Mapping):
                _populate(child, v)
            else:
                child.value = v
