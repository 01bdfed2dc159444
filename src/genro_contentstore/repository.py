# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Repository - Workspaces and the sessions opened on them."""

from __future__ import annotations

from typing import Iterable

from .constants import DEFAULT_USER_ID, DEFAULT_WORKSPACE
from .nodetypes import ResolveMode, TypeDeclaration
from .records import ItemRecord
from .session import Session


class Repository:
    """Holds one backing item map per workspace name.

    Sessions opened on the same workspace of the same repository share
    that map and see each other's changes. Workspaces and repositories
    never share anything.

    Example:
        >>> repo = Repository()
        >>> first = repo.session()
        >>> first.add_child('/', 'shared')
        Node('/shared')
        >>> repo.session().exists('/shared')
        True
    """

    __slots__ = ('mode', 'same_name_siblings', '_workspaces')

    def __init__(
        self,
        mode: ResolveMode = ResolveMode.PERMISSIVE,
        same_name_siblings: bool = False,
    ) -> None:
        self.mode = mode
        self.same_name_siblings = same_name_siblings
        self._workspaces: dict[str, dict[str, ItemRecord]] = {}

    def __repr__(self) -> str:
        return f"Repository({self.mode.value}, workspaces={self.workspace_names})"

    @property
    def workspace_names(self) -> list[str]:
        return list(self._workspaces)

    def session(
        self,
        workspace_name: str | None = None,
        user_id: str | None = None,
        mode: ResolveMode | None = None,
        declarations: Iterable[TypeDeclaration] | None = None,
    ) -> Session:
        """Open a session on ``workspace_name`` (created on first use)."""
        workspace_name = workspace_name or DEFAULT_WORKSPACE
        items = self._workspaces.setdefault(workspace_name, {})
        return Session(
            items,
            mode=mode or self.mode,
            user_id=user_id or DEFAULT_USER_ID,
            workspace_name=workspace_name,
            same_name_siblings=self.same_name_siblings,
            declarations=declarations,
        )


def new_session(
    user_id: str = DEFAULT_USER_ID,
    workspace_name: str = DEFAULT_WORKSPACE,
    mode: ResolveMode = ResolveMode.PERMISSIVE,
    declarations: Iterable[TypeDeclaration] | None = None,
) -> Session:
    """Open a session on a fresh, private repository."""
    return Repository(mode).session(workspace_name, user_id, declarations=declarations)
