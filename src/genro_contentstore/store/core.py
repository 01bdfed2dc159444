# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""ItemStore - A flat, path-keyed map behaving like a tree.

Records live in one insertion-ordered dict keyed by normalized path. The
tree shape is implicit in the keys: the children of '/a' are the keys
matching '/a/<segment>' and sibling order is the order in which those
keys appear in the dict.

Key Features:
    - **Atomic subtree move**: relocate a record and all its descendants
    - **Sibling reordering**: move a child (with its subtree) before another
    - **Cascading delete**: removing a path removes everything below it
    - **Anchored child listing**: '/a/child1' never lists '/a/child10/x'
    - **Shared backing map**: two stores over one dict see each other

Example:
    >>> store = ItemStore()
    >>> store.put(ContainerRecord('/a'))
    >>> store.put(LeafRecord('/a/title', 'hello'))
    >>> store.child_names('/a')
    ['title']
    >>> store.move_subtree('/a', '/b')
    '/b'
    >>> store.get('/b/title').value
    'hello'
"""

from __future__ import annotations

from typing import Any, Callable, Iterator

from .. import paths
from ..constants import ROOT_PATH
from ..exceptions import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    TypeMismatchError,
)
from ..records import ContainerRecord, DirtyState, ItemRecord, LeafRecord

RecordPredicate = Callable[[ItemRecord], bool]


class ItemStore:
    """The path-to-record map and its structural operations.

    Structural operations either complete or raise before touching the
    map: a failing move or reorder leaves every record where it was.

    Attributes:
        same_name_siblings: If True, moving onto an existing path places
            the subtree at the next free 'name[n]' instead of failing.
    """

    __slots__ = ('_items', 'same_name_siblings', '_known_changes')

    def __init__(
        self,
        items: dict[str, ItemRecord] | None = None,
        same_name_siblings: bool = False,
    ) -> None:
        """Initialize an ItemStore.

        Args:
            items: Optional backing dict. Passing the same dict to two
                stores makes both see every change.
            same_name_siblings: Whether moves may land on an occupied name.
        """
        self._items: dict[str, ItemRecord] = {} if items is None else items
        self.same_name_siblings = same_name_siblings
        self._known_changes = False
        if ROOT_PATH not in self._items:
            self._items[ROOT_PATH] = ContainerRecord(ROOT_PATH, dirty=DirtyState.CLEAN)

    # ==================== Special Methods ====================

    def __repr__(self) -> str:
        return f"ItemStore({len(self._items)} items)"

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, path: str) -> bool:
        return path in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._items))

    @property
    def items(self) -> dict[str, ItemRecord]:
        """The backing dict (shared, not copied)."""
        return self._items

    # ==================== Core API ====================

    def get(self, path: str) -> ItemRecord | None:
        """Record at ``path`` or None."""
        return self._items.get(path)

    def get_container(self, path: str) -> ContainerRecord:
        """Container record at ``path``.

        Raises:
            NotFoundError: If nothing is stored at ``path``.
            TypeMismatchError: If the record is a leaf.
        """
        record = self._items.get(path)
        if record is None:
            raise NotFoundError(f"Path not found: {path}")
        if not record.is_container:
            raise TypeMismatchError(f"Not a node: {path}")
        return record

    def exists(self, path: str) -> bool:
        return path in self._items

    def put(self, record: ItemRecord) -> None:
        """Insert or overwrite the record at its path.

        New paths are appended after their existing siblings.

        Raises:
            NotFoundError: If the parent is not a stored container.
        """
        parent = record.parent_path
        if parent is not None:
            parent_record = self._items.get(parent)
            if parent_record is None or not parent_record.is_container:
                raise NotFoundError(f"Parent node not found: {parent}")
        self._items[record.path] = record

    def remove_subtree(self, path: str) -> bool:
        """Remove the record at ``path`` and everything below it.

        Returns:
            False if nothing was stored at ``path``.

        Raises:
            InvalidArgumentError: When asked to remove the root.
        """
        if path == ROOT_PATH:
            raise InvalidArgumentError("Cannot remove the root node")
        if path not in self._items:
            return False
        prefix = path + '/'
        for key in [k for k in self._items if k == path or k.startswith(prefix)]:
            del self._items[key]
        parent = self._items.get(paths.parent_of(path))
        if parent is not None:
            parent.mark_changed()
        self._known_changes = True
        return True

    def move_subtree(self, src: str, dst: str) -> str:
        """Relocate ``src`` and all its descendants to ``dst``.

        Relative structure, relative order and identity tokens are kept.
        The moved subtree lands after its new siblings.

        Returns:
            The final destination path ('name[n]' when same-name siblings
            made room for it).

        Raises:
            InvalidArgumentError: If ``dst`` carries an index suffix, ``src``
                is the root, or ``dst`` is ``src`` itself or inside it.
            AlreadyExistsError: If ``dst`` exists and same-name siblings
                are not permitted.
            NotFoundError: If ``dst``'s parent or ``src`` does not resolve.
            TypeMismatchError: If ``src`` is a leaf.
        """
        if paths.has_same_name_index(paths.name_of(dst)):
            raise InvalidArgumentError(f"Destination must not carry an index: {dst}")
        if src == ROOT_PATH:
            raise InvalidArgumentError("Cannot move the root node")
        if dst == src or paths.is_descendant(dst, src):
            raise InvalidArgumentError(f"Cannot move {src} into itself ({dst})")
        if dst in self._items:
            if not self.same_name_siblings:
                raise AlreadyExistsError(f"Item already exists: {dst}")
            dst = self._next_free_sibling(dst)
        dst_parent = self._items.get(paths.parent_of(dst))
        if dst_parent is None or not dst_parent.is_container:
            raise NotFoundError(f"Destination parent not found: {paths.parent_of(dst)}")
        source = self._items.get(src)
        if source is None:
            raise NotFoundError(f"Source not found: {src}")
        if not source.is_container:
            raise TypeMismatchError(f"Cannot move a property: {src}")

        moved = self._subtree_keys(src)
        moved_set = set(moved)
        remaining = {k: v for k, v in self._items.items() if k not in moved_set}
        for key in moved:
            record = self._items[key]
            remaining[paths.relocate(key, src, dst)] = record.relocated(
                paths.relocate(key, src, dst)
            )
        self._replace(remaining)

        for parent_path in {paths.parent_of(src), paths.parent_of(dst)}:
            parent = self._items.get(parent_path)
            if parent is not None:
                parent.mark_changed()
        self._known_changes = True
        return dst

    def reorder_siblings(
        self, parent: str, moved_name: str, before_name: str | None
    ) -> None:
        """Move a child (with its subtree) before another sibling.

        Args:
            parent: Path of the container.
            moved_name: Name of the child to move.
            before_name: Sibling to land before, or None to move last.

        Raises:
            InvalidArgumentError: If a name is not a single segment.
            NotFoundError: If either child does not resolve.
        """
        paths.check_segment(moved_name)
        if before_name is not None:
            paths.check_segment(before_name)
        self.get_container(parent)
        moved_path = paths.join(parent, moved_name)
        if moved_path not in self._items:
            raise NotFoundError(f"Child not found: {moved_path}")
        before_path = None
        if before_name is not None:
            before_path = paths.join(parent, before_name)
            if before_path not in self._items:
                raise NotFoundError(f"Child not found: {before_path}")
            if before_path == moved_path:
                return

        moved = self._subtree_keys(moved_path)
        moved_set = set(moved)
        result: dict[str, ItemRecord] = {}
        for key, record in self._items.items():
            if key in moved_set:
                continue
            if key == before_path:
                result.update((k, self._items[k]) for k in moved)
            result[key] = record
        if before_path is None:
            result.update((k, self._items[k]) for k in moved)
        self._replace(result)

        self._items[parent].mark_changed()
        self._known_changes = True

    # ==================== Iteration ====================

    def iter_children(
        self, parent: str, predicate: RecordPredicate | None = None
    ) -> Iterator[ItemRecord]:
        """Direct children of ``parent`` in sibling order."""
        pattern = paths.child_pattern(parent)
        for key, record in list(self._items.items()):
            if pattern.match(key) and (predicate is None or predicate(record)):
                yield record

    def list_children(
        self, parent: str, predicate: RecordPredicate | None = None
    ) -> list[ItemRecord]:
        """Direct children of ``parent``, optionally filtered."""
        return list(self.iter_children(parent, predicate))

    def child_names(self, parent: str) -> list[str]:
        """Names of the direct children of ``parent`` in order."""
        return [record.name for record in self.iter_children(parent)]

    def walk(self, path: str = ROOT_PATH) -> Iterator[tuple[str, ItemRecord]]:
        """Walk the subtree below ``path`` in pre-order.

        Yields:
            Tuples of (path, record), ``path`` itself excluded.

        Example:
            >>> for path, record in store.walk('/content'):
            ...     print(path, record.is_container)
        """
        def _walk_gen(current: str) -> Iterator[tuple[str, ItemRecord]]:
            for record in self.list_children(current):
                yield record.path, record
                if record.is_container:
                    yield from _walk_gen(record.path)

        return _walk_gen(path)

    def get_by_identity(self, identity: str) -> ContainerRecord:
        """Container record carrying ``identity``.

        Raises:
            NotFoundError: If no node carries that identity.
        """
        for record in self._items.values():
            if record.is_container and record.identity == identity:
                return record
        raise NotFoundError(f"No node with identifier {identity!r}")

    # ==================== Conversion ====================

    def as_dict(self, path: str = ROOT_PATH) -> dict[str, Any]:
        """Convert the subtree at ``path`` to a plain nested dict.

        Containers become nested dicts, leaves become their value (a list
        for multi-valued leaves).
        """
        result: dict[str, Any] = {}
        for record in self.list_children(path):
            if record.is_container:
                result[record.name] = self.as_dict(record.path)
            elif record.multiple:
                result[record.name] = list(record.values)
            else:
                result[record.name] = record.value
        return result

    # ==================== Change Tracking ====================

    @property
    def has_pending_changes(self) -> bool:
        """True after a structural change or while any record is dirty."""
        if self._known_changes:
            return True
        return any(r.dirty is not DirtyState.CLEAN for r in self._items.values())

    def mark_changed(self, path: str) -> None:
        """Flag the record at ``path`` as changed (new records stay new)."""
        record = self._items.get(path)
        if record is not None:
            record.mark_changed()
        self._known_changes = True

    def commit(self) -> None:
        """Reset every record to CLEAN and clear the change flag."""
        for record in self._items.values():
            record.dirty = DirtyState.CLEAN
        self._known_changes = False

    # ==================== Internals ====================

    def _subtree_keys(self, path: str) -> list[str]:
        prefix = path + '/'
        return [k for k in self._items if k == path or k.startswith(prefix)]

    def _next_free_sibling(self, dst: str) -> str:
        index = 2
        while f"{dst}[{index}]" in self._items:
            index += 1
        return f"{dst}[{index}]"

    def _replace(self, new_items: dict[str, ItemRecord]) -> None:
        # In place, so stores sharing the dict see the new order.
        self._items.clear()
        self._items.update(new_items)


__all__ = ['ItemStore', 'ContainerRecord', 'LeafRecord', 'RecordPredicate']
