# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Well-known names shared across the package."""

ROOT_PATH = '/'

DEFAULT_WORKSPACE = 'default'
DEFAULT_USER_ID = 'admin'

# Node types
NT_BASE = 'nt:base'
NT_UNSTRUCTURED = 'nt:unstructured'
NT_FOLDER = 'nt:folder'
NT_FILE = 'nt:file'
NT_HIERARCHY_NODE = 'nt:hierarchyNode'
REP_ROOT = 'rep:root'
MIX_CREATED = 'mix:created'
MIX_REFERENCEABLE = 'mix:referenceable'

# Properties
JCR_PRIMARY_TYPE = 'jcr:primaryType'
JCR_MIXIN_TYPES = 'jcr:mixinTypes'
JCR_CREATED = 'jcr:created'
JCR_CREATED_BY = 'jcr:createdBy'
JCR_UUID = 'jcr:uuid'

# Security
EVERYONE = 'everyone'
ADMIN_ID = 'admin'
HOME_PATH = '/home'
GROUPS_PATH = '/home/groups'
USERS_PATH = '/home/users'
SYSTEM_USERS_PATH = '/home/users/system'
REP_GROUP = 'rep:Group'
REP_USER = 'rep:User'
REP_SYSTEM_USER = 'rep:SystemUser'
REP_AUTHORIZABLE_FOLDER = 'rep:AuthorizableFolder'
REP_PRINCIPAL_NAME = 'rep:principalName'
REP_AUTHORIZABLE_ID = 'rep:authorizableId'
REP_DISABLED = 'rep:disabled'

RESIDUAL = '*'
