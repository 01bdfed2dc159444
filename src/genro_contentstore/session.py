# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Session - The public surface over one item store.

A Session composes an ItemStore (possibly sharing its backing dict with
other sessions on the same workspace), a TypeGraphResolver owned by the
session and, on first use, a MembershipResolver.

Node types are recorded as properties: 'jcr:primaryType' holds the primary
type name and the multi-valued 'jcr:mixinTypes' holds mixin names. In
STRICT mode, adding a node or a mixin materializes the autocreated child
nodes and properties declared for that type and its supertypes.

Example:
    >>> session = Session()
    >>> session.add_child('/', 'content')
    Node('/content')
    >>> session.set_leaf_value('/content', 'title', 'Hello')
    Property('/content/title')
    >>> session.move('/content', '/moved')
    Node('/moved')
    >>> session.get_property('/moved/title').value
    'Hello'
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, TypeVar

from . import paths
from .constants import (
    DEFAULT_USER_ID,
    DEFAULT_WORKSPACE,
    JCR_CREATED,
    JCR_CREATED_BY,
    JCR_MIXIN_TYPES,
    JCR_PRIMARY_TYPE,
    JCR_UUID,
    NT_UNSTRUCTURED,
    REP_ROOT,
    ROOT_PATH,
)
from .exceptions import (
    AlreadyExistsError,
    NotFoundError,
    SessionClosedError,
    TypeMismatchError,
    UnsupportedOperationError,
)
from .node import Item, Node, Property
from .nodetypes import (
    ChildDefinition,
    PropertyDefinition,
    ResolveMode,
    TypeDeclaration,
    TypeGraphResolver,
)
from .records import ContainerRecord, DirtyState, ItemRecord, LeafRecord
from .security import MembershipResolver, PrincipalManager
from .store import ItemStore

logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

_NO_VALUE = object()


def live(method: F) -> F:
    """Raise SessionClosedError when the session was logged out."""

    @functools.wraps(method)
    def wrapper(self: Session, *args: Any, **kwargs: Any) -> Any:
        if not self._live:
            raise SessionClosedError(f"Session on {self.workspace_name!r} is closed")
        return method(self, *args, **kwargs)

    return wrapper  # type: ignore[return-value]


class Session:
    """Read and write access to one workspace.

    Attributes:
        store: The ItemStore.
        types: The TypeGraphResolver.
        user_id: Id of the user owning the session.
        workspace_name: Name of the workspace.
    """

    def __init__(
        self,
        items: dict[str, ItemRecord] | None = None,
        mode: ResolveMode = ResolveMode.PERMISSIVE,
        user_id: str = DEFAULT_USER_ID,
        workspace_name: str = DEFAULT_WORKSPACE,
        same_name_siblings: bool = False,
        declarations: Iterable[TypeDeclaration] | None = None,
    ) -> None:
        """Initialize a Session.

        Args:
            items: Optional backing dict shared with other sessions on the
                same workspace.
            mode: Resolve mode of the session's type registry.
            user_id: Id of the session user (recorded in 'jcr:createdBy').
            workspace_name: Name of the workspace.
            same_name_siblings: Whether moves may land on an occupied name.
            declarations: Types to register right away (STRICT mode).
        """
        self.store = ItemStore(items, same_name_siblings=same_name_siblings)
        self.types = TypeGraphResolver(mode, declarations)
        self.user_id = user_id
        self.workspace_name = workspace_name
        self._live = True
        self._user_manager: MembershipResolver | None = None
        self._principal_manager: PrincipalManager | None = None
        if JCR_PRIMARY_TYPE not in self.store.child_names(ROOT_PATH):
            self.store.put(LeafRecord(
                paths.join(ROOT_PATH, JCR_PRIMARY_TYPE), REP_ROOT, dirty=DirtyState.CLEAN
            ))

    def __repr__(self) -> str:
        return f"Session({self.workspace_name!r}, user={self.user_id!r})"

    @property
    def mode(self) -> ResolveMode:
        return self.types.mode

    # ==================== Lifecycle ====================

    @property
    def is_live(self) -> bool:
        return self._live

    def logout(self) -> None:
        self._live = False

    @property
    @live
    def has_pending_changes(self) -> bool:
        return self.store.has_pending_changes

    @live
    def save(self) -> None:
        """Commit: every record becomes clean."""
        self.store.commit()

    @live
    def refresh(self, keep_changes: bool = True) -> None:
        """Keep pending changes; discarding them is not modelled."""
        if not keep_changes:
            raise UnsupportedOperationError('refresh without keeping changes')

    @property
    @live
    def user_manager(self) -> MembershipResolver:
        """The membership resolver, loading existing homes on first use."""
        if self._user_manager is None:
            self._user_manager = MembershipResolver(self)
            self._user_manager.load_existing()
        return self._user_manager

    @property
    @live
    def principal_manager(self) -> PrincipalManager:
        if self._principal_manager is None:
            self._principal_manager = PrincipalManager(self.user_manager)
        return self._principal_manager

    # ==================== Lookup ====================

    def _handle(self, record: ItemRecord) -> Item:
        return Node(self, record) if record.is_container else Property(self, record)

    @property
    @live
    def root(self) -> Node:
        return Node(self, self.store.get(ROOT_PATH))

    @live
    def get(self, path: str) -> Item | None:
        """Item at ``path`` or None."""
        record = self.store.get(paths.normalize(path))
        return self._handle(record) if record is not None else None

    @live
    def get_item(self, path: str) -> Item:
        item = self.get(path)
        if item is None:
            raise NotFoundError(f"Path not found: {path}")
        return item

    @live
    def get_node(self, path: str) -> Node:
        record = self.store.get(paths.normalize(path))
        if record is None or not record.is_container:
            raise NotFoundError(f"Node not found: {path}")
        return Node(self, record)

    @live
    def get_property(self, path: str) -> Property:
        record = self.store.get(paths.normalize(path))
        if record is None or record.is_container:
            raise NotFoundError(f"Property not found: {path}")
        return Property(self, record)

    @live
    def get_by_identity(self, identity: str) -> Node:
        return Node(self, self.store.get_by_identity(identity))

    @live
    def exists(self, path: str) -> bool:
        return self.store.exists(paths.normalize(path))

    @live
    def node_exists(self, path: str) -> bool:
        record = self.store.get(paths.normalize(path))
        return record is not None and record.is_container

    @live
    def property_exists(self, path: str) -> bool:
        record = self.store.get(paths.normalize(path))
        return record is not None and record.is_leaf

    @live
    def list_children(
        self, parent: str, name_filter: str | Iterable[str] | None = None
    ) -> list[Node]:
        """Child nodes of ``parent`` whose names match ``name_filter``."""
        parent = paths.normalize(parent)
        self.store.get_container(parent)
        match = paths.name_matcher(name_filter)
        return [
            Node(self, record)
            for record in self.store.iter_children(
                parent, lambda r: r.is_container and match(r.name)
            )
        ]

    @live
    def list_properties(
        self, parent: str, name_filter: str | Iterable[str] | None = None
    ) -> list[Property]:
        parent = paths.normalize(parent)
        self.store.get_container(parent)
        match = paths.name_matcher(name_filter)
        return [
            Property(self, record)
            for record in self.store.iter_children(
                parent, lambda r: r.is_leaf and match(r.name)
            )
        ]

    # ==================== Mutation ====================

    @live
    def add_child(self, parent: str, name: str, type_name: str | None = None) -> Node:
        """Add a child node under ``parent``.

        Without ``type_name`` the type comes from the matching child
        definition of the parent type, else 'nt:unstructured'.

        Raises:
            NotFoundError: If the parent does not exist, or (STRICT) an
                explicit type is not registered.
            AlreadyExistsError: If the path is taken and same-name
                siblings are not permitted.
            InvalidArgumentError: For invalid names.
        """
        parent = paths.normalize(parent)
        parent_record = self.store.get(parent)
        if parent_record is None or not parent_record.is_container:
            raise NotFoundError(f"Parent node not found: {parent}")
        path = paths.join(parent, paths.check_name(name))
        if self.store.exists(path):
            if not self.store.same_name_siblings:
                raise AlreadyExistsError(f"Item already exists: {path}")
            index = 2
            while self.store.exists(f"{path}[{index}]"):
                index += 1
            path = f"{path}[{index}]"

        if type_name is not None:
            self.types.get_node_type(type_name)
        else:
            type_name = self._default_child_type(parent, name)

        record = ContainerRecord(path)
        self.store.put(record)
        self.store.put(LeafRecord(paths.join(path, JCR_PRIMARY_TYPE), type_name))
        self.store.mark_changed(parent)
        if self.types.is_strict and self.types.has_node_type(type_name):
            self._autocreate(path, type_name, (type_name,))
        return Node(self, record)

    @live
    def set_leaf_value(
        self,
        parent: str,
        name: str,
        value: Any,
        multiple: bool | None = None,
    ) -> Property | None:
        """Set the property ``name`` of node ``parent``.

        A None value removes the property. An existing property keeps its
        identity and position.

        Raises:
            NotFoundError: If ``parent`` does not exist.
            TypeMismatchError: If ``parent`` is a property or ``name`` is
                a child node.
        """
        parent = paths.normalize(parent)
        self.store.get_container(parent)
        path = paths.join(parent, paths.check_name(name))
        existing = self.store.get(path)
        if existing is not None and existing.is_container:
            raise TypeMismatchError(f"Not a property: {path}")

        if value is None:
            if existing is not None:
                self.store.remove_subtree(path)
            return None

        if existing is None:
            record = LeafRecord(path, value, multiple=multiple)
        else:
            if multiple is None:
                multiple = existing.multiple
            dirty = existing.dirty
            record = LeafRecord(path, value, existing.identity, dirty, multiple)
            record.mark_changed()
        self.store.put(record)
        self.store.mark_changed(parent)
        return Property(self, record)

    @live
    def remove(self, path: str) -> None:
        """Remove the item at ``path`` with its subtree.

        Raises:
            NotFoundError: If nothing is stored at ``path``.
        """
        path = paths.normalize(path)
        if not self.store.remove_subtree(path):
            raise NotFoundError(f"Path not found: {path}")

    @live
    def move(self, src: str, dst: str) -> Node:
        """Move node ``src`` (with its subtree) to ``dst``."""
        final = self.store.move_subtree(paths.normalize(src), paths.normalize(dst))
        return Node(self, self.store.get(final))

    @live
    def order_before(self, parent: str, moved_name: str, before_name: str | None) -> None:
        self.store.reorder_siblings(paths.normalize(parent), moved_name, before_name)

    # ==================== Types ====================

    @live
    def primary_type(self, path: str) -> str:
        leaf = self.store.get(paths.join(paths.normalize(path), JCR_PRIMARY_TYPE))
        return leaf.value if leaf is not None else NT_UNSTRUCTURED

    @live
    def mixin_types(self, path: str) -> list[str]:
        leaf = self.store.get(paths.join(paths.normalize(path), JCR_MIXIN_TYPES))
        return list(leaf.values) if leaf is not None else []

    @live
    def set_primary_type(self, path: str, type_name: str) -> None:
        """Change the primary type.

        Raises:
            NotFoundError: For blank or (STRICT) unregistered names.
        """
        self.types.get_node_type(type_name)
        self.set_leaf_value(path, JCR_PRIMARY_TYPE, type_name)

    @live
    def add_mixin(self, path: str, type_name: str) -> None:
        """Add a mixin; STRICT mode also autocreates its items.

        Raises:
            NotFoundError: For blank or (STRICT) unregistered names.
        """
        path = paths.normalize(path)
        self.types.get_node_type(type_name)
        mixins = self.mixin_types(path)
        if type_name not in mixins:
            mixins.append(type_name)
            self.set_leaf_value(path, JCR_MIXIN_TYPES, mixins, multiple=True)
        if self.types.is_strict:
            self._autocreate(path, type_name, (type_name,))

    @live
    def remove_mixin(self, path: str, type_name: str) -> None:
        """Remove a mixin.

        Raises:
            NotFoundError: If the node does not carry ``type_name``.
        """
        path = paths.normalize(path)
        mixins = self.mixin_types(path)
        if type_name not in mixins:
            raise NotFoundError(f"Mixin {type_name!r} not set on {path}")
        mixins.remove(type_name)
        self.set_leaf_value(path, JCR_MIXIN_TYPES, mixins or None, multiple=True)

    @live
    def is_node_type(self, path: str, type_name: str) -> bool:
        """True if the primary type or a mixin is or inherits ``type_name``."""
        for name in [self.primary_type(path)] + self.mixin_types(path):
            if name == type_name:
                return True
            if (
                self.types.is_strict
                and self.types.has_node_type(name)
                and self.types.is_node_type(name, type_name)
            ):
                return True
        return False

    @live
    def definition_of(self, path: str) -> ChildDefinition | None:
        """The child definition of the parent type that covers ``path``."""
        path = paths.normalize(path)
        parent = paths.parent_of(path)
        if parent is None:
            return None
        return self._child_definition(parent, paths.split_index(paths.name_of(path))[0])

    def _child_definition(self, parent: str, name: str) -> ChildDefinition | None:
        residual = None
        for type_name in [self.primary_type(parent)] + self.mixin_types(parent):
            if self.types.is_strict and not self.types.has_node_type(type_name):
                continue
            for definition in self.types.effective_child_definitions(type_name):
                if definition.name == name:
                    return definition
                if definition.is_residual and residual is None:
                    residual = definition
        return residual

    def _default_child_type(self, parent: str, name: str) -> str:
        if self.types.is_strict:
            definition = self._child_definition(parent, name)
            if definition is not None and definition.default_type:
                return definition.default_type
        return NT_UNSTRUCTURED

    # ==================== Autocreation ====================

    def _autocreate(self, path: str, type_name: str, chain: tuple[str, ...]) -> None:
        """Materialize autocreated items of ``type_name`` under ``path``.

        ``chain`` holds the types being materialized above; an autocreated
        child whose type is already in the chain is skipped.
        """
        for definition in self.types.effective_property_definitions(type_name):
            if not definition.autocreated or definition.is_residual:
                continue
            leaf_path = paths.join(path, definition.name)
            if self.store.exists(leaf_path):
                continue
            value = self._autocreated_value(path, definition)
            if value is _NO_VALUE:
                logger.debug(
                    "No value for autocreated property %s of %s", definition.name, type_name
                )
                continue
            self.store.put(LeafRecord(leaf_path, value, multiple=definition.multiple))

        for definition in self.types.effective_child_definitions(type_name):
            if not definition.autocreated or definition.is_residual:
                continue
            child_path = paths.join(path, definition.name)
            if self.store.exists(child_path):
                continue
            child_type = definition.default_type or NT_UNSTRUCTURED
            if child_type in chain:
                logger.debug("Skipping recursive autocreated node %s of %s", child_path, type_name)
                continue
            self.store.put(ContainerRecord(child_path))
            self.store.put(LeafRecord(paths.join(child_path, JCR_PRIMARY_TYPE), child_type))
            if self.types.has_node_type(child_type):
                self._autocreate(child_path, child_type, chain + (child_type,))

    def _autocreated_value(self, path: str, definition: PropertyDefinition) -> Any:
        if definition.default_values:
            if definition.multiple:
                return list(definition.default_values)
            return definition.default_values[0]
        if definition.name == JCR_CREATED:
            return datetime.now(timezone.utc)
        if definition.name == JCR_CREATED_BY:
            return self.user_id
        if definition.name == JCR_UUID:
            return self.store.get(path).identity
        return _NO_VALUE
