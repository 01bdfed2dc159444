# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Item handles: Node and Property.

A handle is a path bound to a session. It holds no data of its own: every
read goes to the session's item store, so two handles on the same path
always agree. Handles compare equal when they refer to the same record
identity.
"""

from __future__ import annotations

from typing import Any, Iterable, TYPE_CHECKING

from . import paths
from .constants import ROOT_PATH
from .exceptions import NotFoundError
from .records import ItemRecord, LeafRecord

if TYPE_CHECKING:
    from .nodetypes import ChildDefinition, NodeType
    from .session import Session


class Item:
    """Common base of Node and Property.

    Attributes:
        session: The owning session.
        path: Absolute path of the item.
    """

    __slots__ = ('session', 'path', '_identity')

    def __init__(self, session: Session, record: ItemRecord) -> None:
        self.session = session
        self.path = record.path
        self._identity = record.identity

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return NotImplemented
        return self.session.store.items is other.session.store.items and (
            self._identity == other._identity
        )

    def __hash__(self) -> int:
        return hash(self._identity)

    @property
    def record(self) -> ItemRecord:
        """The current record at this path.

        Raises:
            NotFoundError: If the item was removed or moved away.
        """
        record = self.session.store.get(self.path)
        if record is None or record.identity != self._identity:
            raise NotFoundError(f"Item no longer exists: {self.path}")
        return record

    @property
    def name(self) -> str:
        return paths.name_of(self.path)

    @property
    def depth(self) -> int:
        return paths.depth(self.path)

    @property
    def parent(self) -> Node:
        """The parent node.

        Raises:
            NotFoundError: For the root node.
        """
        parent = paths.parent_of(self.path)
        if parent is None:
            raise NotFoundError("The root node has no parent")
        return self.session.get_node(parent)

    def ancestor(self, depth: int) -> Node:
        return self.session.get_node(paths.ancestor(self.path, depth))

    @property
    def is_node(self) -> bool:
        return False

    @property
    def is_new(self) -> bool:
        return self.record.is_new

    @property
    def is_modified(self) -> bool:
        return self.record.is_modified

    def is_same(self, other: Item) -> bool:
        return self == other

    def remove(self) -> None:
        self.session.remove(self.path)


class Node(Item):
    """A node handle.

    Example:
        >>> root = session.root
        >>> content = root.add_node('content')
        >>> content.set_property('title', 'Hello')
        Property('/content/title')
        >>> [n.name for n in root.nodes()]
        ['content']
    """

    __slots__ = ()

    @property
    def is_node(self) -> bool:
        return True

    @property
    def identifier(self) -> str:
        return self._identity

    # ==================== Children ====================

    def _resolve(self, rel_path: str) -> str:
        return paths.resolve(self.path, rel_path)

    def add_node(self, rel_path: str, type_name: str | None = None) -> Node:
        """Add a child node; intermediate nodes must exist."""
        target = self._resolve(rel_path)
        parent = paths.parent_of(target)
        if parent is None:
            raise NotFoundError("Cannot add the root node")
        return self.session.add_child(parent, paths.name_of(target), type_name)

    def get_node(self, rel_path: str) -> Node:
        return self.session.get_node(self._resolve(rel_path))

    def has_node(self, rel_path: str) -> bool:
        return self.session.node_exists(self._resolve(rel_path))

    def has_nodes(self) -> bool:
        return bool(self.session.list_children(self.path))

    def nodes(self, name_filter: str | Iterable[str] | None = None) -> list[Node]:
        """Child nodes in order, optionally filtered by glob patterns."""
        return self.session.list_children(self.path, name_filter)

    def order_before(self, src_name: str, dest_name: str | None) -> None:
        """Move child ``src_name`` before ``dest_name`` (or last)."""
        self.session.order_before(self.path, src_name, dest_name)

    # ==================== Properties ====================

    def set_property(self, name: str, value: Any, multiple: bool | None = None) -> Property | None:
        """Set a property; a None value removes it."""
        return self.session.set_leaf_value(self.path, name, value, multiple)

    def get_property(self, rel_path: str) -> Property:
        return self.session.get_property(self._resolve(rel_path))

    def has_property(self, rel_path: str) -> bool:
        return self.session.property_exists(self._resolve(rel_path))

    def has_properties(self) -> bool:
        return bool(self.session.list_properties(self.path))

    def properties(self, name_filter: str | Iterable[str] | None = None) -> list[Property]:
        return self.session.list_properties(self.path, name_filter)

    # ==================== Types ====================

    @property
    def primary_node_type(self) -> NodeType:
        return self.session.types.get_node_type(self.session.primary_type(self.path))

    @property
    def mixin_node_types(self) -> list[NodeType]:
        return [
            self.session.types.get_node_type(name)
            for name in self.session.mixin_types(self.path)
        ]

    def is_node_type(self, name: str) -> bool:
        return self.session.is_node_type(self.path, name)

    def set_primary_type(self, name: str) -> None:
        self.session.set_primary_type(self.path, name)

    def add_mixin(self, name: str) -> None:
        self.session.add_mixin(self.path, name)

    def remove_mixin(self, name: str) -> None:
        self.session.remove_mixin(self.path, name)

    def can_add_mixin(self, name: str) -> bool:
        return self.session.types.has_node_type(name)

    @property
    def definition(self) -> ChildDefinition | None:
        return self.session.definition_of(self.path)

    @property
    def primary_item(self) -> Item:
        """The item named by the primary type's primary item name.

        Raises:
            NotFoundError: If the type names none or it does not exist.
        """
        name = self.primary_node_type.primary_item_name
        if name is None:
            raise NotFoundError(f"No primary item for {self.path}")
        return self.session.get_item(paths.join(self.path, name))

    @property
    def is_root(self) -> bool:
        return self.path == ROOT_PATH


class Property(Item):
    """A property handle."""

    __slots__ = ()

    @property
    def _leaf(self) -> LeafRecord:
        return self.record

    @property
    def value(self) -> Any:
        return self._leaf.value

    @property
    def values(self) -> tuple[Any, ...]:
        return self._leaf.values

    @property
    def is_multiple(self) -> bool:
        return self._leaf.multiple

    def set_value(self, value: Any) -> None:
        """Replace the value; None removes the property."""
        self.session.set_leaf_value(
            paths.parent_of(self.path), self.name, value, self.is_multiple
        )
