import math
import numpy as np
import pytest
from ctm.alphabet import Alphabet
from ctm.errors import ModelMismatch
from ctm.tree import ContextTree
from ctm.likelihood import tree_log_likelihood


@pytest.fixture
def binary():
    return Alphabet.of_size(2)


class TestEmptyTree:
    def test_iid_log_likelihood(self, binary):
        tree = ContextTree([], binary)
        logL = tree_log_likelihood([0, 1, 0, 1], [0, 0, 1, 1], tree, binary)
        assert logL == pytest.approx(4 * math.log(0.5))

    def test_single_symbol_is_certain(self, binary):
        tree = ContextTree([], binary)
        assert tree_log_likelihood([1, 1, 1], [1, 1, 1], tree, binary) == pytest.approx(0.0)


class TestContextTreeLikelihood:
    def test_hand_computed(self, binary):
        tree = ContextTree([[0], [1]], binary)
        X = [0, 1, 1, 0, 1]
        Y = [1, 0, 1, 0, 0]
        # context 0 -> responses 0, 0; context 1 -> responses 1, 0
        assert tree_log_likelihood(X, Y, tree, binary) == pytest.approx(-2 * math.log(2))

    def test_responses_default_to_inputs(self, binary):
        tree = ContextTree([[0], [1]], binary)
        X = [0, 0, 1, 1]
        assert tree_log_likelihood(X, None, tree, binary) == pytest.approx(-2 * math.log(2))
        assert tree_log_likelihood([0, 1, 0, 1, 0, 1], None, tree, binary) == pytest.approx(0.0)

    def test_response_lag_zero(self, binary):
        # with lag 0 each response is the input itself, which the context determines
        tree = ContextTree([[0], [1]], binary)
        X = [0, 1, 1, 0, 1, 0]
        assert tree_log_likelihood(X, X, tree, binary, response_lag=0) == pytest.approx(0.0)

    def test_variable_length_contexts(self, binary):
        tree = ContextTree([[0], [0, 1], [1, 1]], binary)
        X = [0, 1, 1, 0, 1, 0]
        # positions 1..4 -> contexts 01, 11, 0, 01 with responses 1, 0, 1, 0
        expected = 2 * math.log(0.5)
        assert tree_log_likelihood(X, X, tree, binary) == pytest.approx(expected)

    def test_symbolic_alphabet(self):
        A = Alphabet(["a", "b"])
        tree = ContextTree([["a"], ["b"]], A)
        logL = tree_log_likelihood(list("abbab"), list("babaa"), tree, A)
        assert logL == pytest.approx(-2 * math.log(2))

    def test_unexplained_past_is_minus_infinity(self, binary):
        tree = ContextTree([[0, 0], [1, 0]], binary)
        X = [0, 0, 1, 0]
        logL = tree_log_likelihood(X, X, tree, binary)
        assert logL == -math.inf

    def test_strict_raises_model_mismatch(self, binary):
        tree = ContextTree([[0, 0], [1, 0]], binary)
        with pytest.raises(ModelMismatch):
            tree_log_likelihood([0, 0, 1, 0], [0, 0, 1, 0], tree, binary, strict=True)

    def test_finite_never_positive(self, binary):
        rng = np.random.default_rng(3)
        tree = ContextTree([[0], [0, 1], [1, 1]], binary)
        X = rng.integers(0, 2, size=200).tolist()
        Y = rng.integers(0, 2, size=200).tolist()
        logL = tree_log_likelihood(X, Y, tree, binary)
        assert math.isfinite(logL)
        assert logL <= 0.0


class TestValidation:
    def test_length_mismatch(self, binary):
        tree = ContextTree([[0], [1]], binary)
        with pytest.raises(ValueError):
            tree_log_likelihood([0, 1, 0], [0, 1], tree, binary)

    def test_symbol_outside_alphabet(self, binary):
        tree = ContextTree([[0], [1]], binary)
        with pytest.raises(ValueError):
            tree_log_likelihood([0, 2], [0, 1], tree, binary)

    def test_alphabet_mismatch(self, binary):
        tree = ContextTree([[0], [1]], binary)
        with pytest.raises(ValueError):
            tree_log_likelihood([0, 1], [0, 1], tree, Alphabet.of_size(3))

    def test_negative_lag(self, binary):
        tree = ContextTree([[0], [1]], binary)
        with pytest.raises(ValueError):
            tree_log_likelihood([0, 1], [0, 1], tree, binary, response_lag=-1)
