from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from .exceptions import ConfigurationError


class ConfigurationNode:
    """
    A node of a hierarchical configuration.

    A node has an optional name and value, an ordered list of child nodes and
    an ordered list of attribute nodes. Attribute nodes are leaves flagged
    with ``attribute=True``. Nodes compare by identity.
    """

    def __init__(
        self,
        name: str | None = None,
        value: Any = None,
        *,
        attribute: bool = False,
    ):
        self.name = name
        self.value = value
        self.attribute = attribute
        self.parent: Optional[ConfigurationNode] = None
        self._children: List[ConfigurationNode] = []
        self._attributes: List[ConfigurationNode] = []

    @property
    def children(self) -> List[ConfigurationNode]:
        return list(self._children)

    @property
    def attributes(self) -> List[ConfigurationNode]:
        return list(self._attributes)

    def get_children(self, name: str | None = None) -> List[ConfigurationNode]:
        """Return all children, or only those with the given name."""
        if name is None:
            return list(self._children)
        return [child for child in self._children if child.name == name]

    def get_attributes(self, name: str | None = None) -> List[ConfigurationNode]:
        if name is None:
            return list(self._attributes)
        return [attr for attr in self._attributes if attr.name == name]

    def add_child(self, child: ConfigurationNode) -> ConfigurationNode:
        _detach_from_parent(child)
        child.attribute = False
        child.parent = self
        self._children.append(child)
        return child

    def add_attribute(self, attr: ConfigurationNode) -> ConfigurationNode:
        _detach_from_parent(attr)
        attr.attribute = True
        attr.parent = self
        self._attributes.append(attr)
        return attr

    def remove_child(self, child: ConfigurationNode) -> bool:
        return _remove_by_identity(self._children, child)

    def remove_attribute(self, attr: ConfigurationNode) -> bool:
        return _remove_by_identity(self._attributes, attr)

    def remove_children(self) -> None:
        for child in self._children:
            child.parent = None
        self._children.clear()

    def remove_attributes(self) -> None:
        for attr in self._attributes:
            attr.parent = None
        self._attributes.clear()

    def is_defined(self) -> bool:
        """A node is defined if it carries a value, children or attributes."""
        return self.value is not None or bool(self._children) or bool(self._attributes)

    def __repr__(self) -> str:
        kind = "attribute" if self.attribute else "node"
        return f"<ConfigurationNode {kind} name={self.name!r} value={self.value!r}>"


def _remove_by_identity(nodes: List[ConfigurationNode], node: ConfigurationNode) -> bool:
    for i, candidate in enumerate(nodes):
        if candidate is node:
            del nodes[i]
            node.parent = None
            return True
    return False


def _detach_from_parent(node: ConfigurationNode) -> None:
    # A node belongs to at most one parent
    if node.parent is None:
        return
    if node.attribute:
        node.parent.remove_attribute(node)
    else:
        node.parent.remove_child(node)


@dataclass(frozen=True)
class _KeyPart:
    name: str
    index: int | None = None
    attribute: bool = False


@dataclass(frozen=True)
class NodeAddData:
    """Where to add a node: an existing parent, the missing path below it, and the new node's name."""

    parent: ConfigurationNode
    path: Tuple[str, ...]
    name: str
    attribute: bool = False

    def create_parent(self) -> ConfigurationNode:
        """Create the missing path nodes and return the direct parent of the new node."""
        node = self.parent
        for name in self.path:
            node = node.add_child(ConfigurationNode(name))
        return node

    def create(self, value: Any = None) -> ConfigurationNode:
        """Create the missing path and the new node holding value."""
        parent = self.create_parent()
        node = ConfigurationNode(self.name, value)
        if self.attribute:
            return parent.add_attribute(node)
        return parent.add_child(node)


class DefaultExpressionEngine:
    """
    Evaluates keys like ``database.host(1)[@port]`` against a node tree.

    - parts are separated by the property delimiter;
    - ``name(i)`` selects the i-th child called ``name`` of each parent;
    - ``[@name]`` selects an attribute;
    - a doubled delimiter stands for a literal delimiter inside a name.

    All markers can be customized; a configuration falls back to an engine
    with the default markers when its engine is reset.
    """

    def __init__(
        self,
        property_delimiter: str = ".",
        attribute_start: str = "[@",
        attribute_end: str = "]",
        index_start: str = "(",
        index_end: str = ")",
    ):
        if not property_delimiter or not attribute_start or not attribute_end:
            raise ValueError("Delimiters must not be empty.")
        self.property_delimiter = property_delimiter
        self.attribute_start = attribute_start
        self.attribute_end = attribute_end
        self.index_start = index_start
        self.index_end = index_end

    def query(self, root: ConfigurationNode, key: str | None) -> List[ConfigurationNode]:
        """Return the nodes selected by key, in document order."""
        nodes = [root]
        for part in self._parse(key):
            found: List[ConfigurationNode] = []
            for node in nodes:
                if part.attribute:
                    found.extend(node.get_attributes(part.name))
                    continue
                children = node.get_children(part.name)
                if part.index is None:
                    found.extend(children)
                elif part.index < len(children):
                    found.append(children[part.index])
            nodes = found
            if not nodes:
                break
        return nodes

    def prepare_add(self, root: ConfigurationNode, key: str | None) -> NodeAddData:
        """
        Work out where a new node for key goes, without changing the tree.

        The result names the deepest existing parent and the intermediate
        nodes still missing below it; NodeAddData.create() builds them.

        :raises ConfigurationError: for an empty key or a key with an
            attribute anywhere but in its last part.
        """
        parts = self._parse(key)
        if not parts:
            raise ConfigurationError("Cannot add a property with an empty key.")
        if any(part.attribute for part in parts[:-1]):
            raise ConfigurationError(
                f"Invalid key {key!r}: attributes cannot have child nodes."
            )

        node = root
        missing: List[str] = []
        for part in parts[:-1]:
            if missing:
                missing.append(part.name)
                continue
            children = node.get_children(part.name)
            if part.index is not None and part.index < len(children):
                node = children[part.index]
            elif part.index is None and children:
                node = children[-1]
            else:
                missing.append(part.name)

        last = parts[-1]
        return NodeAddData(node, tuple(missing), last.name, last.attribute)

    def escape(self, name: str) -> str:
        """Escape a literal node name so it can be used as a single key part."""
        d = self.property_delimiter
        return name.replace(d, d + d)

    def attribute_key(self, name: str) -> str:
        return f"{self.attribute_start}{name}{self.attribute_end}"

    def _parse(self, key: str | None) -> List[_KeyPart]:
        if not key:
            return []

        d = self.property_delimiter
        a_start, a_end = self.attribute_start, self.attribute_end
        parts: List[_KeyPart] = []
        buf: List[str] = []

        def flush() -> None:
            if buf:
                parts.append(self._element_part("".join(buf)))
                buf.clear()

        pos = 0
        while pos < len(key):
            if key.startswith(a_start, pos):
                flush()
                end = key.find(a_end, pos + len(a_start))
                if end < 0:
                    raise ConfigurationError(f"Unterminated attribute in key {key!r}.")
                parts.append(_KeyPart(key[pos + len(a_start):end], attribute=True))
                pos = end + len(a_end)
            elif key.startswith(d, pos):
                if key.startswith(d, pos + len(d)):
                    buf.append(d)
                    pos += 2 * len(d)
                else:
                    flush()
                    pos += len(d)
            else:
                buf.append(key[pos])
                pos += 1
        flush()
        return parts

    def _element_part(self, token: str) -> _KeyPart:
        if self.index_start and self.index_end and token.endswith(self.index_end):
            start = token.rfind(self.index_start)
            if start > 0:
                index = token[start + len(self.index_start):-len(self.index_end)]
                if index.isdigit():
                    return _KeyPart(token[:start], int(index))
        return _KeyPart(token)
