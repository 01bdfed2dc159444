# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""MembershipResolver - Users, groups and their transitive membership.

The resolver is the identity factory and the owner of membership state:
every authorizable by id, and for each group its declared members in the
order they were added. Transitive queries walk those declarations with
the shared closure helper:

- members(group): declared members, then their declared members, and so
  on (the group itself excluded).
- member_of(authorizable): groups declaring it, then the groups declaring
  those, and so on (itself excluded).

is_member(group, authorizable) is narrower: a direct
declaration, or a declaration in a group that is itself directly declared
in ``group``.

Example:
    >>> resolver = session.user_manager
    >>> g1, g2 = resolver.create_group('g1'), resolver.create_group('g2')
    >>> u = resolver.create_user('u')
    >>> g1.add_member(g2), g2.add_member(u)
    (True, True)
    >>> sorted(g.id for g in resolver.member_of(u))
    ['g1', 'g2']
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, TYPE_CHECKING, TypeVar

from .. import paths
from ..closure import iter_closure
from ..constants import (
    EVERYONE,
    GROUPS_PATH,
    HOME_PATH,
    JCR_PRIMARY_TYPE,
    REP_AUTHORIZABLE_FOLDER,
    REP_AUTHORIZABLE_ID,
    REP_GROUP,
    REP_PRINCIPAL_NAME,
    REP_SYSTEM_USER,
    REP_USER,
    ROOT_PATH,
    SYSTEM_USERS_PATH,
    USERS_PATH,
)
from ..exceptions import (
    AlreadyExistsError,
    ContentStoreError,
    InvalidArgumentError,
    TypeMismatchError,
)
from .authorizables import Authorizable, Group, User
from .principals import Principal, SearchType, SystemUserPrincipal

if TYPE_CHECKING:
    from ..session import Session

logger = logging.getLogger(__name__)

A = TypeVar('A', bound=Authorizable)


class MembershipResolver:
    """Identity factory and membership graph for one session.

    Attributes:
        session: The session holding the home nodes.
        everyone: The principal every user implicitly carries.
    """

    __slots__ = ('session', 'everyone', '_authorizables', '_declared_members')

    def __init__(self, session: Session) -> None:
        self.session = session
        self.everyone = Principal(EVERYONE)
        self._authorizables: dict[str, Authorizable] = {}
        self._declared_members: dict[str, dict[str, Authorizable]] = {}

    def __repr__(self) -> str:
        return f"MembershipResolver({len(self._authorizables)} authorizables)"

    def __len__(self) -> int:
        return len(self._authorizables)

    # ==================== Identity factory ====================

    def create_group(
        self,
        group_id: str | None = None,
        principal: Principal | None = None,
        intermediate_path: str | None = None,
    ) -> Group:
        """Create a group and its home node.

        Args:
            group_id: The group id; defaults to the principal name.
            principal: Optional principal; defaults to one named after
                the id.
            intermediate_path: Parent of the home node (default
                '/home/groups').

        Raises:
            InvalidArgumentError: If neither id nor principal is given.
            AlreadyExistsError: If the id is taken.
        """
        group_id = self._authorizable_id(group_id, principal)
        home = self._ensure_home(intermediate_path or GROUPS_PATH, group_id, REP_GROUP)
        group = Group(group_id, principal, home, self)
        self._authorizables[group_id] = group
        self._declared_members[group_id] = {}
        return group

    def create_user(
        self,
        user_id: str,
        principal: Principal | None = None,
        intermediate_path: str | None = None,
    ) -> User:
        """Create a user and its home node.

        A SystemUserPrincipal makes a system user, homed under
        '/home/users/system' unless ``intermediate_path`` says otherwise.

        Raises:
            AlreadyExistsError: If the id is taken.
        """
        user_id = self._authorizable_id(user_id, principal)
        is_system = isinstance(principal, SystemUserPrincipal)
        if intermediate_path is None:
            intermediate_path = SYSTEM_USERS_PATH if is_system else USERS_PATH
        node_type = REP_SYSTEM_USER if is_system else REP_USER
        home = self._ensure_home(intermediate_path, user_id, node_type)
        user = User(user_id, principal, home, self)
        self._authorizables[user_id] = user
        return user

    def create_system_user(
        self, user_id: str, intermediate_path: str | None = None
    ) -> User:
        return self.create_user(user_id, SystemUserPrincipal(user_id), intermediate_path)

    def _authorizable_id(self, authorizable_id: str | None, principal: Principal | None) -> str:
        if authorizable_id is None:
            if principal is None:
                raise InvalidArgumentError("Either an id or a principal is required")
            authorizable_id = principal.name
        if authorizable_id in self._authorizables:
            raise AlreadyExistsError(f"Authorizable already exists: {authorizable_id}")
        return authorizable_id

    def _ensure_home(self, intermediate_path: str, name: str, node_type: str) -> str:
        """Create the home node (and missing folders) unless it exists."""
        current = ROOT_PATH
        for segment in paths.normalize(intermediate_path).split('/')[1:]:
            if not segment:
                continue
            child = paths.join(current, segment)
            if not self.session.node_exists(child):
                self.session.add_child(current, segment, REP_AUTHORIZABLE_FOLDER)
            current = child
        home = paths.join(current, name)
        if not self.session.node_exists(home):
            self.session.add_child(current, name, node_type)
            self.session.set_leaf_value(home, REP_PRINCIPAL_NAME, name)
            self.session.set_leaf_value(home, REP_AUTHORIZABLE_ID, name)
        return home

    # ==================== Lookup ====================

    def find_by_id(self, authorizable_id: str) -> Authorizable | None:
        return self._authorizables.get(authorizable_id)

    def find_by_principal(self, principal: Principal) -> Authorizable | None:
        return self._authorizables.get(principal.name)

    def find_by_id_as(self, authorizable_id: str, kind: type[A]) -> A | None:
        """Look up by id, checking the kind.

        Raises:
            TypeMismatchError: If the authorizable is not a ``kind``.
        """
        authorizable = self._authorizables.get(authorizable_id)
        if authorizable is not None and not isinstance(authorizable, kind):
            raise TypeMismatchError(
                f"{authorizable_id!r} is not a {kind.__name__}"
            )
        return authorizable

    def find_by_path(self, path: str) -> Authorizable | None:
        for authorizable in self._authorizables.values():
            if authorizable.path == path:
                return authorizable
        return None

    def find_by_declared_property(
        self,
        rel_path: str,
        value: Any = None,
        search_type: SearchType = SearchType.ALL,
    ) -> list[Authorizable]:
        """Authorizables whose property ``rel_path`` holds ``value``.

        A None value matches every authorizable having the property.
        """
        matches = []
        for authorizable in self._authorizables.values():
            if not isinstance(search_type, SearchType):
                continue
            if not search_type.accepts(authorizable.is_group):
                continue
            values = authorizable.get_property(rel_path)
            if values is None:
                continue
            if value is None or any(v == value for v in values):
                matches.append(authorizable)
        return matches

    def iter_authorizables(self, search_type: SearchType = SearchType.ALL) -> Iterator[Authorizable]:
        for authorizable in list(self._authorizables.values()):
            if search_type.accepts(authorizable.is_group):
                yield authorizable

    def all(self, search_type: SearchType = SearchType.ALL) -> list[Authorizable]:
        return list(self.iter_authorizables(search_type))

    def remove_authorizable(self, authorizable: Authorizable) -> bool:
        """Forget an authorizable, its memberships and its home node.

        Returns:
            False if ``authorizable`` is not the one registered under its id.
        """
        if self._authorizables.get(authorizable.id) is not authorizable:
            return False
        del self._authorizables[authorizable.id]
        self._declared_members.pop(authorizable.id, None)
        for members in self._declared_members.values():
            if members.get(authorizable.id) is authorizable:
                del members[authorizable.id]
        if self.session.node_exists(authorizable.path):
            self.session.remove(authorizable.path)
        return True

    def load_existing(self) -> int:
        """Register users and groups whose home nodes already exist.

        Scans the subtree of '/home'. Failures are logged, not raised.

        Returns:
            The number of authorizables added.
        """
        store = self.session.store
        if not store.exists(HOME_PATH):
            return 0
        added = 0
        try:
            for path, record in store.walk(HOME_PATH):
                if not record.is_container:
                    continue
                primary = store.get(paths.join(path, JCR_PRIMARY_TYPE))
                node_type = primary.value if primary is not None else None
                if node_type not in (REP_USER, REP_SYSTEM_USER, REP_GROUP):
                    continue
                authorizable_id = self.session.get_property(
                    paths.join(path, REP_AUTHORIZABLE_ID)
                ).value
                if authorizable_id in self._authorizables:
                    continue
                if node_type == REP_GROUP:
                    self._authorizables[authorizable_id] = Group(authorizable_id, None, path, self)
                    self._declared_members[authorizable_id] = {}
                else:
                    principal = (
                        SystemUserPrincipal(authorizable_id)
                        if node_type == REP_SYSTEM_USER else None
                    )
                    self._authorizables[authorizable_id] = User(authorizable_id, principal, path, self)
                added += 1
        except ContentStoreError:
            logger.error("Failed to load already existing authorizables", exc_info=True)
        return added

    # ==================== Membership ====================

    def _members_of(self, group: Authorizable) -> dict[str, Authorizable]:
        return self._declared_members.get(group.id, {}) if group.is_group else {}

    def declared_members(self, group: Group) -> list[Authorizable]:
        return list(self._members_of(group).values())

    def is_declared_member(self, group: Group, authorizable: Authorizable) -> bool:
        return self._members_of(group).get(authorizable.id) is authorizable

    def is_member(self, group: Group, authorizable: Authorizable) -> bool:
        """Direct member, or direct member of a directly declared group."""
        if self.is_declared_member(group, authorizable):
            return True
        return any(
            member.is_group and self.is_declared_member(member, authorizable)
            for member in self._members_of(group).values()
        )

    def add_member(self, group: Group, authorizable: Authorizable) -> bool:
        """Declare a member.

        Returns:
            False if ``authorizable`` already is a member per is_member.
        """
        if self.is_member(group, authorizable):
            return False
        self._declared_members.setdefault(group.id, {})[authorizable.id] = authorizable
        return True

    def add_members(self, group: Group, *ids: str) -> set[str]:
        """Declare members by id; unknown ids are ignored.

        Returns:
            The ids actually added.
        """
        added = set()
        for authorizable_id in ids:
            if authorizable_id in self._members_of(group):
                continue
            authorizable = self._authorizables.get(authorizable_id)
            if authorizable is not None and self.add_member(group, authorizable):
                added.add(authorizable_id)
        return added

    def remove_member(self, group: Group, authorizable: Authorizable) -> bool:
        members = self._members_of(group)
        if members.get(authorizable.id) is not authorizable:
            return False
        del members[authorizable.id]
        return True

    def remove_members(self, group: Group, *ids: str) -> set[str]:
        members = self._members_of(group)
        return {i for i in ids if members.pop(i, None) is not None}

    def members(self, group: Group) -> list[Authorizable]:
        """Every transitive member of ``group``, the group excluded.

        Members are the handles stored by add_member, so a handle created
        by another session's resolver is returned as it was added.
        """
        handles: dict[str, Authorizable] = {}

        def declared(authorizable_id: str) -> list[str]:
            members = self._declared_members.get(authorizable_id, {})
            for member_id, member in members.items():
                handles.setdefault(member_id, member)
            return list(members)

        return [handles[i] for i in iter_closure(group.id, declared)]

    def declared_member_of(self, authorizable: Authorizable) -> list[Group]:
        """Groups directly declaring ``authorizable``."""
        return [
            self._authorizables[group_id]
            for group_id, members in self._declared_members.items()
            if members.get(authorizable.id) is authorizable
        ]

    def member_of(self, authorizable: Authorizable) -> list[Group]:
        """Every group ``authorizable`` belongs to, transitively."""
        ids = iter_closure(authorizable.id, self._declared_member_of_ids)
        return [self._authorizables[i] for i in ids]

    def _declared_member_of_ids(self, authorizable_id: str) -> list[str]:
        return [
            group_id for group_id, members in self._declared_members.items()
            if authorizable_id in members
        ]
