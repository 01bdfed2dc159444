# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Security package - Users, groups and principals.

The package is organized into:
- principals: Principal types, SearchType and the PrincipalManager
- authorizables: User and Group handles
- membership: MembershipResolver, the identity factory and membership graph
"""

from .authorizables import Authorizable, Group, User
from .membership import MembershipResolver
from .principals import Principal, PrincipalManager, SearchType, SystemUserPrincipal

__all__ = [
    "Authorizable",
    "Group",
    "MembershipResolver",
    "Principal",
    "PrincipalManager",
    "SearchType",
    "SystemUserPrincipal",
    "User",
]
