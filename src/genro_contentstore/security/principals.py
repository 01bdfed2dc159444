# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Principals and best-effort principal discovery."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from ..constants import REP_PRINCIPAL_NAME
from ..exceptions import ContentStoreError

if TYPE_CHECKING:
    from .membership import MembershipResolver

logger = logging.getLogger(__name__)


class SearchType(Enum):
    """Which authorizables a search considers."""

    USER = 'user'
    GROUP = 'group'
    ALL = 'all'

    def accepts(self, is_group: bool) -> bool:
        if self is SearchType.ALL:
            return True
        return is_group is (self is SearchType.GROUP)


@dataclass(frozen=True)
class Principal:
    """A named security principal."""

    name: str


@dataclass(frozen=True)
class SystemUserPrincipal(Principal):
    """Principal of a system (service) user."""


class PrincipalManager:
    """Principal lookups over a MembershipResolver.

    Every lookup is best effort: a ContentStoreError raised by the
    resolver is logged at DEBUG and turns into an empty result.
    """

    __slots__ = ('_resolver',)

    def __init__(self, resolver: MembershipResolver) -> None:
        self._resolver = resolver

    def get_everyone(self) -> Principal:
        return self._resolver.everyone

    def get_principal(self, name: str) -> Principal | None:
        try:
            authorizable = self._resolver.find_by_id(name)
        except ContentStoreError:
            logger.debug("Failed to get principal %r", name, exc_info=True)
            return None
        return authorizable.principal if authorizable is not None else None

    def has_principal(self, name: str) -> bool:
        try:
            return self._resolver.find_by_id(name) is not None
        except ContentStoreError:
            logger.debug("Failed to determine if principal %r exists", name, exc_info=True)
            return False

    def find_principals(
        self, name_filter: str | None = None, search_type: SearchType = SearchType.ALL
    ) -> set[Principal]:
        """Principals whose name equals ``name_filter`` (any when None)."""
        try:
            found = self._resolver.find_by_declared_property(
                REP_PRINCIPAL_NAME, name_filter, search_type
            )
        except ContentStoreError:
            logger.debug("Failed to find principals", exc_info=True)
            return set()
        return {authorizable.principal for authorizable in found}

    def get_group_membership(self, principal: Principal) -> set[Principal]:
        """Principals of every group the principal belongs to, transitively."""
        try:
            authorizable = self._resolver.find_by_principal(principal)
            if authorizable is None:
                return set()
            return {group.principal for group in self._resolver.member_of(authorizable)}
        except ContentStoreError:
            logger.debug("Failed to get group membership of %r", principal, exc_info=True)
            return set()

    def get_principals(self, search_type: SearchType = SearchType.ALL) -> set[Principal]:
        try:
            return {a.principal for a in self._resolver.all(search_type)}
        except ContentStoreError:
            logger.debug("Failed to get principals", exc_info=True)
            return set()
