# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for Session, Node and Property."""

import logging
from datetime import datetime

import pytest

from genro_contentstore import (
    AlreadyExistsError,
    InvalidArgumentError,
    NotFoundError,
    Repository,
    SessionClosedError,
    TypeMismatchError,
    UnsupportedOperationError,
    new_session,
)


def node_names(nodes):
    return [node.name for node in nodes]


class TestSessionBasics:
    """Tests for lookup and simple mutations."""

    def test_root(self, session):
        """Test the root node."""
        root = session.root
        assert root.path == '/'
        assert root.is_root
        assert root.depth == 0
        assert session.primary_type('/') == 'rep:root'
        with pytest.raises(NotFoundError):
            root.parent

    def test_defaults(self, session):
        """Test default user and workspace."""
        assert session.user_id == 'admin'
        assert session.workspace_name == 'default'
        assert session.is_live

    def test_add_child_and_get(self, session):
        """Test adding and looking up a node."""
        node = session.add_child('/', 'content')
        assert node.path == '/content'
        assert session.get('/content') == node
        assert session.get_item('/content') == node
        assert session.get('/missing') is None
        assert node.primary_node_type.name == 'nt:unstructured'

    def test_add_child_errors(self, session):
        """Test parent, name and duplicate errors."""
        session.add_child('/', 'a')
        with pytest.raises(NotFoundError):
            session.add_child('/missing', 'x')
        with pytest.raises(InvalidArgumentError):
            session.add_child('/a', 'b/c')
        with pytest.raises(AlreadyExistsError):
            session.add_child('/', 'a')

    def test_set_leaf_value(self, session):
        """Test setting, replacing and removing a property."""
        session.add_child('/', 'a')
        prop = session.set_leaf_value('/a', 'title', 'one')
        identity = prop.record.identity
        session.set_leaf_value('/a', 'title', 'two')
        assert session.get_property('/a/title').value == 'two'
        assert session.get_property('/a/title').record.identity == identity
        assert session.set_leaf_value('/a', 'title', None) is None
        assert not session.property_exists('/a/title')

    def test_set_leaf_value_on_child_node(self, session):
        """Test a property cannot replace a child node."""
        session.add_child('/', 'a')
        session.add_child('/a', 'b')
        with pytest.raises(TypeMismatchError):
            session.set_leaf_value('/a', 'b', 'x')

    def test_node_and_property_lookup_kinds(self, session):
        """Test get_node and get_property only return their kind."""
        node = session.add_child('/', 'a')
        node.set_property('p', 1)
        with pytest.raises(NotFoundError):
            session.get_node('/a/p')
        with pytest.raises(NotFoundError):
            session.get_property('/a')
        assert session.node_exists('/a')
        assert session.property_exists('/a/p')
        assert not session.node_exists('/a/p')

    def test_remove(self, session):
        """Test removing a subtree and a missing path."""
        node = session.root.add_node('a')
        node.add_node('b').set_property('p', 1)
        node.remove()
        assert not session.exists('/a/b/p')
        with pytest.raises(NotFoundError):
            session.remove('/a')

    def test_get_by_identity(self, session):
        """Test identity lookup survives moves."""
        node = session.add_child('/', 'a')
        session.move('/a', '/b')
        found = session.get_by_identity(node.identifier)
        assert found.path == '/b'
        assert found == node

    def test_stale_handle(self, session):
        """Test a handle on a moved node no longer resolves."""
        node = session.add_child('/', 'a')
        session.move('/a', '/b')
        with pytest.raises(NotFoundError):
            node.is_new


class TestNodeHandles:
    """Tests for Node and Property handles."""

    def test_relative_paths(self, session):
        """Test relative add, get and has."""
        root = session.root
        root.add_node('a')
        child = root.add_node('a/b')
        assert child.path == '/a/b'
        assert root.has_node('a/b')
        assert root.get_node('a').get_node('b') == child
        assert child.parent.path == '/a'
        assert child.ancestor(1).path == '/a'

    def test_nodes_and_properties(self, session):
        """Test listing children with filters."""
        node = session.root.add_node('a')
        node.add_node('child1')
        node.add_node('child10')
        node.add_node('other')
        node.set_property('title', 'x')
        assert node_names(node.nodes()) == ['child1', 'child10', 'other']
        assert node_names(node.nodes('child*')) == ['child1', 'child10']
        assert node_names(node.nodes('other | child1')) == ['child1', 'other']
        assert node_names(node.properties('title')) == ['title']
        assert {p.name for p in node.properties()} == {'jcr:primaryType', 'title'}
        assert node.has_nodes() and node.has_properties()

    def test_property_values(self, session):
        """Test single and multi-valued properties."""
        node = session.root.add_node('a')
        single = node.set_property('one', 1)
        multi = node.set_property('many', ['x', 'y'])
        assert single.value == 1 and not single.is_multiple
        assert multi.values == ('x', 'y') and multi.is_multiple
        multi.set_value(['z'])
        assert node.get_property('many').values == ('z',)
        empty = node.set_property('none', [], multiple=True)
        assert empty.values == ()

    def test_order_before(self, session):
        """Test reordering child nodes."""
        foo = session.root.add_node('foo')
        session.save()
        for name in ('one', 'two', 'three'):
            foo.add_node(name)
        session.save()
        assert node_names(foo.nodes()) == ['one', 'two', 'three']
        foo.order_before('three', 'two')
        session.save()
        assert node_names(foo.nodes()) == ['one', 'three', 'two']
        foo.order_before('one', None)
        session.save()
        assert node_names(foo.nodes()) == ['three', 'two', 'one']

    def test_order_before_unknown(self, session):
        """Test reordering an unknown child fails."""
        foo = session.root.add_node('foo')
        with pytest.raises(NotFoundError):
            foo.order_before('nope', None)


class TestChangeTracking:
    """Tests for new, modified and pending changes."""

    def test_is_modified(self, session):
        """Test the modified flag across save and set_property."""
        node = session.root.add_node('node')
        assert node.is_new
        assert not node.is_modified
        session.save()
        assert not node.is_new
        assert not node.is_modified
        node.set_property('p', 'v')
        assert node.is_modified
        session.save()
        assert not node.is_modified

    def test_pending_changes(self, session):
        """Test pending changes follow mutations and save."""
        assert not session.has_pending_changes
        session.root.add_node('a')
        assert session.has_pending_changes
        session.save()
        assert not session.has_pending_changes
        session.move('/a', '/b')
        assert session.has_pending_changes
        session.save()
        assert not session.has_pending_changes

    def test_removing_missing_property_changes_nothing(self, session):
        """Test clearing an absent property leaves the session clean."""
        node = session.root.add_node('a')
        node.set_property('p', 'v')
        session.save()
        assert node.set_property('missing', None) is None
        assert not session.has_pending_changes
        assert not node.is_modified
        node.set_property('p', None)
        assert session.has_pending_changes
        assert node.is_modified
        assert not node.has_property('p')

    def test_refresh(self, session):
        """Test refresh keeps changes and refuses to discard them."""
        session.root.add_node('a')
        session.refresh(True)
        assert session.exists('/a')
        with pytest.raises(UnsupportedOperationError):
            session.refresh(False)


class TestMove:
    """Tests for session moves."""

    def test_move_subtree(self, session):
        """Test a move carries children and properties."""
        a = session.root.add_node('a')
        a.add_node('b').set_property('p', 1)
        session.root.add_node('target')
        moved = session.move('/a', '/target/a')
        assert moved.path == '/target/a'
        assert session.get_property('/target/a/b/p').value == 1
        assert not session.exists('/a')

    def test_move_errors(self, session):
        """Test index, existing and missing destinations."""
        session.root.add_node('a')
        session.root.add_node('b')
        with pytest.raises(InvalidArgumentError):
            session.move('/a', '/c[1]')
        with pytest.raises(AlreadyExistsError):
            session.move('/a', '/b')
        with pytest.raises(NotFoundError):
            session.move('/a', '/missing/a')
        with pytest.raises(NotFoundError):
            session.move('/missing', '/c')

    def test_move_property_rejected(self, session):
        """Test a property cannot be moved."""
        session.root.add_node('a').set_property('p', 1)
        with pytest.raises(TypeMismatchError):
            session.move('/a/p', '/p')

    def test_same_name_siblings(self):
        """Test same-name siblings on add and move."""
        session = Repository(same_name_siblings=True).session()
        session.root.add_node('x')
        assert session.root.add_node('x').path == '/x[2]'
        session.root.add_node('y')
        assert session.move('/y', '/x').path == '/x[3]'


class TestPermissiveTypes:
    """Tests for node types in permissive mode."""

    def test_mixins(self, session):
        """Test adding and removing mixins."""
        node = session.root.add_node('a')
        node.add_mixin('mix:referenceable')
        node.add_mixin('mix:referenceable')
        assert session.mixin_types('/a') == ['mix:referenceable']
        assert node.is_node_type('mix:referenceable')
        assert not node.has_property('jcr:uuid')
        node.remove_mixin('mix:referenceable')
        assert node.mixin_node_types == []
        assert not node.has_property('jcr:mixinTypes')

    def test_blank_mixin(self, session):
        """Test a blank mixin name is not found."""
        node = session.root.add_node('a')
        with pytest.raises(NotFoundError):
            node.add_mixin('')

    def test_remove_unknown_mixin(self, session):
        """Test removing a mixin the node does not carry."""
        node = session.root.add_node('a')
        with pytest.raises(NotFoundError):
            node.remove_mixin('mix:nope')

    def test_set_primary_type(self, session):
        """Test changing the primary type."""
        node = session.root.add_node('a', 'nt:folder')
        assert node.primary_node_type.name == 'nt:folder'
        node.set_primary_type('sling:Folder')
        assert node.is_node_type('sling:Folder')
        assert not node.is_node_type('nt:folder')
        with pytest.raises(NotFoundError):
            node.set_primary_type(' ')

    def test_any_type_accepted(self, session):
        """Test an undeclared explicit type works in permissive mode."""
        node = session.root.add_node('a', 'anything:goes')
        assert node.primary_node_type.is_synthesized

    def test_definition_unsupported(self, session):
        """Test definition lookups need declarations."""
        node = session.root.add_node('a')
        with pytest.raises(UnsupportedOperationError):
            node.definition


class TestStrictTypes:
    """Tests for node types and autocreation in strict mode."""

    def test_unregistered_type_not_found(self, strict_session):
        """Test an explicit unknown type fails."""
        with pytest.raises(NotFoundError):
            strict_session.root.add_node('a', 'anything')

    def test_inherited_node_type(self, strict_session):
        """Test is_node_type follows supertypes."""
        folder = strict_session.root.add_node('folder', 'nt:folder')
        assert folder.is_node_type('nt:folder')
        assert folder.is_node_type('nt:hierarchyNode')
        assert folder.is_node_type('mix:created')
        assert folder.is_node_type('nt:base')
        assert not folder.is_node_type('nt:file')

    def test_autocreated_created_properties(self, strict_session):
        """Test nt:file gets jcr:created and jcr:createdBy."""
        node = strict_session.root.add_node('file', 'nt:file')
        assert isinstance(node.get_property('jcr:created').value, datetime)
        assert node.get_property('jcr:createdBy').value == 'admin'

    def test_autocreated_children_and_defaults(self, strict_session, caplog):
        """Test autocreated child nodes and default values."""
        with caplog.at_level(logging.DEBUG, logger='genro_contentstore.session'):
            node = strict_session.root.add_node('n', 'test:withAutoChild')
        assert node.has_node('auto')
        assert node.get_node('auto').primary_node_type.name == 'nt:unstructured'
        assert node.get_property('flag').value is True
        assert node.get_property('tags').values == ('a', 'b')
        assert not node.has_property('nodefault')
        assert 'nodefault' in caplog.text

    def test_self_nesting_stops(self, strict_session):
        """Test a type autocreating itself does not recurse."""
        node = strict_session.root.add_node('n', 'test:selfNesting')
        assert not node.has_node('nested')

    def test_default_child_type_from_definition(self, strict_session):
        """Test the child definition supplies the default type."""
        node = strict_session.root.add_node('n', 'test:withAutoChild')
        content = node.add_node('content')
        assert content.primary_node_type.name == 'nt:folder'
        assert content.has_property('jcr:created')
        assert content.definition.name == 'content'
        assert content.definition.declaring_type == 'test:withAutoChild'

    def test_mixin_autocreates(self, strict_session):
        """Test adding mix:referenceable creates jcr:uuid."""
        node = strict_session.root.add_node('a')
        node.add_mixin('mix:referenceable')
        assert node.get_property('jcr:uuid').value == node.identifier
        with pytest.raises(NotFoundError):
            node.add_mixin('mix:unknown')

    def test_primary_item(self, strict_session):
        """Test the primary item of nt:file."""
        file_node = strict_session.root.add_node('file', 'nt:file')
        content = file_node.add_node('jcr:content')
        assert file_node.primary_item == content
        folder = strict_session.root.add_node('folder', 'nt:folder')
        with pytest.raises(NotFoundError):
            folder.primary_item

    def test_mode_sensitivity(self, session, strict_session):
        """Test the same lookup in both modes."""
        assert session.types.get_node_type('anything').name == 'anything'
        with pytest.raises(NotFoundError):
            strict_session.types.get_node_type('anything')


class TestLifecycle:
    """Tests for logout and repositories."""

    def test_logout(self, session):
        """Test a closed session refuses work."""
        session.logout()
        assert not session.is_live
        with pytest.raises(SessionClosedError):
            session.root
        with pytest.raises(SessionClosedError):
            session.add_child('/', 'a')

    def test_shared_workspace(self):
        """Test sessions on one workspace share items."""
        repo = Repository()
        first = repo.session()
        second = repo.session()
        first.root.add_node('shared')
        assert second.exists('/shared')
        first.move('/shared', '/moved')
        assert second.exists('/moved')

    def test_isolated_workspaces_and_repositories(self):
        """Test other workspaces and repositories see nothing."""
        repo = Repository()
        repo.session().root.add_node('only-here')
        assert not repo.session('other').exists('/only-here')
        assert not Repository().session().exists('/only-here')
        assert not new_session().exists('/only-here')
        assert repo.workspace_names == ['default', 'other']

    def test_session_user(self):
        """Test the session user is recorded."""
        session = new_session(user_id='alice', workspace_name='ws')
        assert session.user_id == 'alice'
        assert session.workspace_name == 'ws'
