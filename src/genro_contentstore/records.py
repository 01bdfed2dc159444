# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Item records held by the ItemStore.

A record is either a container (a node that can have children) or a leaf
(a property holding one or more values). Children of a container are not
stored on the record: their order is the order in which they appear in
the store's map.
"""

from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Iterable

from . import paths
from .exceptions import TypeMismatchError


class DirtyState(Enum):
    """Pending-change state of a record since the last commit."""

    NEW = 'new'
    CHANGED = 'changed'
    CLEAN = 'clean'


def new_identity() -> str:
    """Fresh opaque identity token."""
    return uuid.uuid4().hex


class ItemRecord(ABC):
    """Base record: a path, a dirty flag and a stable identity token.

    The identity survives moves and is the basis of equality.
    """

    __slots__ = ('path', 'identity', 'dirty')

    def __init__(
        self,
        path: str,
        identity: str | None = None,
        dirty: DirtyState = DirtyState.NEW,
    ) -> None:
        self.path = path
        self.identity = identity or new_identity()
        self.dirty = dirty

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.path!r}, {self.dirty.value})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ItemRecord):
            return NotImplemented
        return type(self) is type(other) and self.identity == other.identity

    def __hash__(self) -> int:
        return hash(self.identity)

    @property
    def name(self) -> str:
        return paths.name_of(self.path)

    @property
    def parent_path(self) -> str | None:
        return paths.parent_of(self.path)

    @property
    def is_container(self) -> bool:
        """True if this record can hold children."""
        return False

    @property
    def is_leaf(self) -> bool:
        """True if this record holds values."""
        return not self.is_container

    @property
    def is_new(self) -> bool:
        return self.dirty is DirtyState.NEW

    @property
    def is_modified(self) -> bool:
        return self.dirty is DirtyState.CHANGED

    def mark_changed(self) -> None:
        """Flag as changed unless the record is still new."""
        if self.dirty is DirtyState.CLEAN:
            self.dirty = DirtyState.CHANGED

    @abstractmethod
    def relocated(self, new_path: str) -> ItemRecord:
        """Copy of this record at ``new_path``, same identity."""
        ...


class ContainerRecord(ItemRecord):
    """A node record."""

    __slots__ = ()

    @property
    def is_container(self) -> bool:
        return True

    def relocated(self, new_path: str) -> ContainerRecord:
        return ContainerRecord(new_path, self.identity, self.dirty)


class LeafRecord(ItemRecord):
    """A property record holding one value or a sequence of values.

    Example:
        >>> LeafRecord('/a/title', 'hello').value
        'hello'
        >>> LeafRecord('/a/tags', ['x', 'y']).values
        ('x', 'y')
    """

    __slots__ = ('_values', 'multiple')

    def __init__(
        self,
        path: str,
        value: Any = None,
        identity: str | None = None,
        dirty: DirtyState = DirtyState.NEW,
        multiple: bool | None = None,
    ) -> None:
        super().__init__(path, identity, dirty)
        if multiple is None:
            multiple = isinstance(value, (list, tuple, set, frozenset))
        self.multiple = multiple
        self._values: tuple[Any, ...] = ()
        self.set(value)

    def __repr__(self) -> str:
        shown = self._values if self.multiple else self._values[0]
        return f"LeafRecord({self.path!r}, {shown!r})"

    @property
    def value(self) -> Any:
        """The single value.

        Raises:
            TypeMismatchError: If the leaf is multi-valued.
        """
        if self.multiple:
            raise TypeMismatchError(f"Property {self.path!r} is multi-valued")
        return self._values[0]

    @property
    def values(self) -> tuple[Any, ...]:
        """All values as a tuple.

        Raises:
            TypeMismatchError: If the leaf is single-valued.
        """
        if not self.multiple:
            raise TypeMismatchError(f"Property {self.path!r} is single-valued")
        return self._values

    def set(self, value: Any) -> None:
        """Replace the held value(s), keeping the multiplicity."""
        if self.multiple:
            self._values = tuple(_as_iterable(value))
        else:
            if isinstance(value, (list, tuple, set, frozenset)):
                raise TypeMismatchError(
                    f"Property {self.path!r} is single-valued, got {type(value).__name__}"
                )
            self._values = (value,)

    def relocated(self, new_path: str) -> LeafRecord:
        copy = LeafRecord(
            new_path, identity=self.identity, dirty=self.dirty, multiple=self.multiple
        )
        copy._values = self._values
        return copy


def _as_iterable(value: Any) -> Iterable[Any]:
    if value is None:
        return ()
    if isinstance(value, (list, tuple, set, frozenset)):
        return value
    return (value,)
