import numpy as np
import pytest
from ctm.alphabet import Alphabet
from ctm.tree import ContextTree, classify


@pytest.fixture
def binary():
    return Alphabet.of_size(2)


class TestContextTree:
    def test_height_and_contexts(self, binary):
        tree = ContextTree([[0], [0, 1], [1, 1]], binary)
        assert len(tree) == 3
        assert tree.height == 2
        assert tree.contexts == ((0,), (0, 1), (1, 1))
        assert not tree.is_empty

    def test_empty_tree(self, binary):
        tree = ContextTree([], binary)
        assert tree.is_empty
        assert tree.height == 0
        assert not tree.is_complete()

    def test_context_index_uses_suffix(self, binary):
        tree = ContextTree([[0], [0, 1], [1, 1]], binary)
        # most recent symbol is last
        assert tree.context_index([1, 1, 0]) == 0
        assert tree.context_index([1, 0, 1]) == 1
        assert tree.context_index([0, 1, 1]) == 2
        # too short to decide
        assert tree.context_index([1]) is None

    def test_complete_and_incomplete(self, binary):
        assert ContextTree([[0], [0, 1], [1, 1]], binary).is_complete()
        assert not ContextTree([[0, 0], [1, 0]], binary).is_complete()

    def test_symbols_are_encoded(self):
        A = Alphabet(["a", "b"])
        tree = ContextTree([["a"], ["a", "b"], ["b", "b"]], A)
        assert tree.contexts == ((0,), (0, 1), (1, 1))

    def test_validation(self, binary):
        with pytest.raises(ValueError):
            ContextTree([[0], [0]], binary)
        with pytest.raises(ValueError):
            ContextTree([[1], [0, 1]], binary)  # [1] is a suffix of [0, 1]
        with pytest.raises(ValueError):
            ContextTree([[]], binary)
        with pytest.raises(ValueError):
            ContextTree([[0], [2]], binary)


class TestClassify:
    def test_counts_and_positions(self, binary):
        tree = ContextTree([[0], [0, 1], [1, 1]], binary)
        X = [0, 1, 1, 0, 1, 0]
        cc = classify(tree, X)
        # positions 1..4 are classified (height-1 .. n-1-lag)
        np.testing.assert_array_equal(cc.counts, [1, 2, 1])
        np.testing.assert_array_equal(cc.positions[0], [3])
        np.testing.assert_array_equal(cc.positions[1], [1, 4])
        np.testing.assert_array_equal(cc.positions[2], [2])
        assert not cc.has_unmatched
        assert cc.response_lag == 1

    def test_unmatched_positions(self, binary):
        tree = ContextTree([[0, 0], [1, 0]], binary)
        cc = classify(tree, [0, 0, 1, 0])
        assert cc.has_unmatched
        np.testing.assert_array_equal(cc.unmatched, [2])

    def test_zero_lag_classifies_last_position(self, binary):
        tree = ContextTree([[0], [1]], binary)
        cc = classify(tree, [0, 1, 1], response_lag=0)
        assert int(cc.counts.sum()) == 3

    def test_negative_lag_rejected(self, binary):
        tree = ContextTree([[0], [1]], binary)
        with pytest.raises(ValueError):
            classify(tree, [0, 1], response_lag=-1)
