# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""User and group handles.

Handles are thin: membership lives in the MembershipResolver and the
home node lives in the session's item store. Each handle keeps its own
property bag, pre-populated with the principal name.

Example:
    >>> group = resolver.create_group('editors')
    >>> user = resolver.create_user('alice')
    >>> group.add_member(user)
    True
    >>> [g.id for g in user.member_of()]
    ['editors']
"""

from __future__ import annotations

from typing import Any, TYPE_CHECKING

from .. import paths
from ..constants import ADMIN_ID, REP_DISABLED, REP_PRINCIPAL_NAME
from .principals import Principal, SystemUserPrincipal

if TYPE_CHECKING:
    from .membership import MembershipResolver


class Authorizable:
    """Common base of User and Group.

    Attributes:
        id: The authorizable id.
        principal: The principal (named after the id unless given).
        path: Path of the home node.
    """

    __slots__ = ('id', 'principal', 'path', '_resolver', '_properties')

    def __init__(
        self,
        authorizable_id: str,
        principal: Principal | None,
        path: str,
        resolver: MembershipResolver,
    ) -> None:
        self.id = authorizable_id
        self.principal = principal if principal is not None else Principal(authorizable_id)
        self.path = path
        self._resolver = resolver
        self._properties: dict[str, tuple[Any, ...]] = {
            REP_PRINCIPAL_NAME: (authorizable_id,),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.id!r})"

    @property
    def is_group(self) -> bool:
        return False

    # ==================== Membership ====================

    def declared_member_of(self) -> list[Group]:
        return self._resolver.declared_member_of(self)

    def member_of(self) -> list[Group]:
        return self._resolver.member_of(self)

    def remove(self) -> bool:
        return self._resolver.remove_authorizable(self)

    # ==================== Properties ====================

    def property_names(self, rel_path: str | None = None) -> list[str]:
        """Own property names, or those starting with ``rel_path``."""
        if rel_path is None:
            return [key for key in self._properties if '/' not in key]
        return [key for key in self._properties if key.startswith(rel_path)]

    def has_property(self, rel_path: str) -> bool:
        return rel_path in self._properties

    def get_property(self, rel_path: str) -> tuple[Any, ...] | None:
        return self._properties.get(rel_path)

    def set_property(self, rel_path: str, value: Any) -> None:
        if isinstance(value, (list, tuple, set, frozenset)):
            self._properties[rel_path] = tuple(value)
        else:
            self._properties[rel_path] = (value,)

    def remove_property(self, rel_path: str) -> bool:
        return self._properties.pop(rel_path, None) is not None


class User(Authorizable):
    """A user; the disabled state is kept on the home node."""

    __slots__ = ()

    @property
    def is_admin(self) -> bool:
        return self.id == ADMIN_ID

    @property
    def is_system_user(self) -> bool:
        return isinstance(self.principal, SystemUserPrincipal)

    def disable(self, reason: str | None) -> None:
        """Disable with a reason, or enable again when reason is None."""
        self._resolver.session.set_leaf_value(self.path, REP_DISABLED, reason)

    @property
    def is_disabled(self) -> bool:
        return self._resolver.session.property_exists(paths.join(self.path, REP_DISABLED))

    @property
    def disabled_reason(self) -> str | None:
        leaf = self._resolver.session.store.get(paths.join(self.path, REP_DISABLED))
        return leaf.value if leaf is not None else None


class Group(Authorizable):
    """A group of users and groups."""

    __slots__ = ()

    @property
    def is_group(self) -> bool:
        return True

    def declared_members(self) -> list[Authorizable]:
        return self._resolver.declared_members(self)

    def members(self) -> list[Authorizable]:
        return self._resolver.members(self)

    def is_declared_member(self, authorizable: Authorizable) -> bool:
        return self._resolver.is_declared_member(self, authorizable)

    def is_member(self, authorizable: Authorizable) -> bool:
        return self._resolver.is_member(self, authorizable)

    def add_member(self, authorizable: Authorizable) -> bool:
        return self._resolver.add_member(self, authorizable)

    def add_members(self, *ids: str) -> set[str]:
        return self._resolver.add_members(self, *ids)

    def remove_member(self, authorizable: Authorizable) -> bool:
        return self._resolver.remove_member(self, authorizable)

    def remove_members(self, *ids: str) -> set[str]:
        return self._resolver.remove_members(self, *ids)
