# Copyright 2025 Softwell S.r.l. - Genropy Team
# SPDX-License-Identifier: Apache-2.0

"""Tests for the relation closure helper."""

import sys

from genro_contentstore import closure, iter_closure


class TestClosure:
    """Tests for closure and iter_closure."""

    def test_depth_first_preorder(self):
        """Test order is depth-first pre-order in declaration order."""
        graph = {'x': ['a', 'b'], 'a': ['c'], 'b': ['d'], 'c': [], 'd': []}
        assert closure('x', graph.__getitem__) == ['a', 'c', 'b', 'd']

    def test_start_excluded(self):
        """Test the start identity is never yielded."""
        graph = {'a': ['b'], 'b': ['a']}
        assert closure('a', graph.__getitem__) == ['b']

    def test_self_loop(self):
        """Test a self-loop yields nothing."""
        assert closure('a', lambda n: ['a']) == []

    def test_diamond_deduplicated(self):
        """Test a node reachable twice is yielded once."""
        graph = {'u': ['g1', 'g2'], 'g1': ['top'], 'g2': ['top'], 'top': []}
        assert closure('u', graph.__getitem__) == ['g1', 'top', 'g2']

    def test_longer_cycle_terminates(self):
        """Test a three-node cycle terminates."""
        graph = {'a': ['b'], 'b': ['c'], 'c': ['a']}
        assert closure('a', graph.__getitem__) == ['b', 'c']

    def test_deep_chain_without_recursion(self):
        """Test a chain deeper than the recursion limit."""
        depth = sys.getrecursionlimit() + 100
        result = closure(0, lambda n: [n + 1] if n < depth else [])
        assert len(result) == depth
        assert result[-1] == depth

    def test_iter_closure_is_lazy(self):
        """Test the generator only expands what is consumed."""
        calls = []

        def related(n):
            calls.append(n)
            return [n + 1]

        iterator = iter_closure(0, related)
        assert next(iterator) == 1
        assert calls == [0]

    def test_empty(self):
        """Test an unrelated start yields nothing."""
        assert closure('lonely', lambda n: []) == []
