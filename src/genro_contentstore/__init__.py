# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Genro-ContentStore - In-memory, path-addressed content store.

A lightweight, zero-dependency stand-in for a hierarchical content
repository, meant for tests: a path-keyed item store with atomic subtree
moves and sibling reordering, a node type graph with permissive and strict
resolution, and users and groups with transitive membership.
"""

__version__ = "0.1.0"

from .closure import closure, iter_closure
from .exceptions import (
    AlreadyExistsError,
    ContentStoreError,
    InvalidArgumentError,
    NotFoundError,
    SessionClosedError,
    TypeMismatchError,
    UnsupportedInCurrentModeError,
    UnsupportedOperationError,
)
from .node import Item, Node, Property
from .nodetypes import (
    ChildDefinition,
    NodeType,
    PropertyDefinition,
    RegisterResult,
    ResolveMode,
    TypeDeclaration,
    TypeGraphResolver,
)
from .records import ContainerRecord, DirtyState, ItemRecord, LeafRecord
from .repository import Repository, new_session
from .security import (
    Authorizable,
    Group,
    MembershipResolver,
    Principal,
    PrincipalManager,
    SearchType,
    SystemUserPrincipal,
    User,
)
from .session import Session
from .store import ItemStore

__all__ = [
    # Core classes
    "ItemStore",
    "Session",
    "Repository",
    "new_session",
    # Records and handles
    "ItemRecord",
    "ContainerRecord",
    "LeafRecord",
    "DirtyState",
    "Item",
    "Node",
    "Property",
    # Node types
    "ResolveMode",
    "RegisterResult",
    "TypeDeclaration",
    "ChildDefinition",
    "PropertyDefinition",
    "NodeType",
    "TypeGraphResolver",
    # Security
    "Authorizable",
    "User",
    "Group",
    "MembershipResolver",
    "Principal",
    "SystemUserPrincipal",
    "PrincipalManager",
    "SearchType",
    # Closure
    "closure",
    "iter_closure",
    # Exceptions
    "ContentStoreError",
    "NotFoundError",
    "AlreadyExistsError",
    "TypeMismatchError",
    "InvalidArgumentError",
    "UnsupportedOperationError",
    "UnsupportedInCurrentModeError",
    "SessionClosedError",
]
