# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Shared pytest fixtures for genro_contentstore tests."""

from __future__ import annotations

import pytest

from genro_contentstore import (
    ChildDefinition,
    PropertyDefinition,
    ResolveMode,
    Session,
    TypeDeclaration,
    new_session,
)


def builtin_declarations() -> list[TypeDeclaration]:
    """A small built-in schema plus a few test types."""
    return [
        TypeDeclaration('nt:base', abstract=True),
        TypeDeclaration(
            'mix:created',
            mixin=True,
            property_definitions=[
                PropertyDefinition('jcr:created', required_type='Date', autocreated=True, protected=True),
                PropertyDefinition('jcr:createdBy', autocreated=True, protected=True),
            ],
        ),
        TypeDeclaration(
            'mix:referenceable',
            mixin=True,
            property_definitions=[
                PropertyDefinition('jcr:uuid', autocreated=True, mandatory=True, protected=True),
            ],
        ),
        TypeDeclaration('nt:hierarchyNode', supertypes=['mix:created'], abstract=True),
        TypeDeclaration(
            'nt:folder',
            supertypes=['nt:hierarchyNode'],
            child_definitions=[
                ChildDefinition('*', required_types=('nt:hierarchyNode',)),
            ],
        ),
        TypeDeclaration(
            'nt:file',
            supertypes=['nt:hierarchyNode'],
            primary_item_name='jcr:content',
            child_definitions=[
                ChildDefinition('jcr:content', mandatory=True),
            ],
        ),
        TypeDeclaration(
            'nt:unstructured',
            orderable_children=True,
            child_definitions=[
                ChildDefinition('*', default_type='nt:unstructured', same_name_siblings=True),
            ],
            property_definitions=[PropertyDefinition('*', required_type='Undefined')],
        ),
        TypeDeclaration('rep:AuthorizableFolder'),
        TypeDeclaration('rep:Authorizable', abstract=True),
        TypeDeclaration('rep:Group', supertypes=['rep:Authorizable']),
        TypeDeclaration('rep:User', supertypes=['rep:Authorizable']),
        TypeDeclaration('rep:SystemUser', supertypes=['rep:User']),
        TypeDeclaration(
            'test:withAutoChild',
            child_definitions=[
                ChildDefinition('auto', default_type='nt:unstructured', autocreated=True),
                ChildDefinition('content', default_type='nt:folder'),
            ],
            property_definitions=[
                PropertyDefinition('flag', required_type='Boolean', default_values=(True,), autocreated=True),
                PropertyDefinition('tags', default_values=('a', 'b'), multiple=True, autocreated=True),
                PropertyDefinition('nodefault', autocreated=True),
            ],
        ),
        TypeDeclaration(
            'test:selfNesting',
            child_definitions=[
                ChildDefinition('nested', default_type='test:selfNesting', autocreated=True),
            ],
        ),
    ]


@pytest.fixture
def declarations() -> list[TypeDeclaration]:
    """The built-in schema as a fresh list."""
    return builtin_declarations()


@pytest.fixture
def session() -> Session:
    """Permissive session on a private repository."""
    return new_session()


@pytest.fixture
def strict_session() -> Session:
    """Strict session with the built-in schema registered."""
    return new_session(mode=ResolveMode.STRICT, declarations=builtin_declarations())
