"""
Markov utilities for context-tree models.

This module provides:
- Row-stochastic normalization (zero rows stay zero) and the stationary
  distribution of a finite chain via power iteration.
- A discrete sampler by inverse CDF with explicit RNG threading.
- The finite-Markov representation of a complete context tree: every past of
  length height is mapped to the transition row of the context it ends with,
  together with the sliding-window shift table over those pasts.
- A sequence generator for context-tree models and random models for demos.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple
import logging
import numpy as np

from .alphabet import Alphabet
from .indexer import DEFAULT_MAX_STATES, PastIndexer
from .tree import ContextTree

logger = logging.getLogger(__name__)


def _row_stochastic(T: np.ndarray) -> np.ndarray:
    """Return a row-stochastic copy of T (rows sum to 1, zero rows stay zero)."""
    T = np.asarray(T, dtype=float)
    rs = T.sum(axis=1, keepdims=True)
    rs[rs == 0.0] = 1.0
    return T / rs


def stationary_distribution(
    T: np.ndarray,
    shift: np.ndarray | None = None,
    tol: float = 1e-12,
    max_iter: int = 200_000,
) -> np.ndarray:
    """Compute the stationary distribution of a finite-state Markov chain.

    Uses power iteration on the row-stochastic transition matrix T. With a
    shift table, T is (states x symbols) and state i moves to shift[i, a]
    with probability T[i, a], so the states x states matrix is never formed.
    The result is normalized and finite even for numerically ill-conditioned
    inputs.
    """
    T = _row_stochastic(T)
    k = T.shape[0]
    if shift is not None:
        shift = np.asarray(shift)
        if shift.shape != T.shape:
            raise ValueError("shift table must have the shape of T")
        targets = shift.ravel()
    pi = np.ones(k, dtype=float) / k
    for _ in range(max_iter):
        if shift is None:
            pi_new = pi @ T
        else:
            pi_new = np.bincount(targets, weights=(pi[:, None] * T).ravel(), minlength=k)
        if np.linalg.norm(pi_new - pi, 1) < tol:
            pi = pi_new
            break
        pi = pi_new
    s = float(pi.sum())
    if not np.isfinite(s) or s == 0:
        pi = np.ones(k, dtype=float) / k
    else:
        pi = pi / s
    return pi


def check_transition_probabilities(tree: ContextTree, P: np.ndarray, alphabet: Alphabet) -> np.ndarray:
    """Validate P against the tree and alphabet; return it as a float array."""
    P = np.asarray(P, dtype=float)
    if P.ndim != 2 or P.shape != (len(tree), len(alphabet)):
        raise ValueError(
            f"P must have shape (n_contexts, alphabet size) = {(len(tree), len(alphabet))}, got {P.shape}"
        )
    if np.any(P < 0) or not np.all(np.isfinite(P)):
        raise ValueError("P must contain finite non-negative probabilities")
    if not np.allclose(P.sum(axis=1), 1.0, atol=1e-8):
        raise ValueError("every row of P must sum to 1")
    return P


def sample_discrete(
    support: Sequence,
    prob: Sequence[float],
    n: int,
    rng: np.random.Generator | None = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """Draw n independent samples from the distribution prob over support.

    Returns (samples, indices); sample i falls in the first cell of the
    cumulative distribution that exceeds a uniform draw.
    """
    if rng is None:
        rng = np.random.default_rng()
    prob = np.asarray(prob, dtype=float)
    support = np.asarray(support)
    if prob.ndim != 1 or len(prob) != len(support) or len(prob) == 0:
        raise ValueError("support and prob must be non-empty and of equal length")
    if np.any(prob < 0) or float(prob.sum()) <= 0:
        raise ValueError("prob must be non-negative with positive mass")
    u = np.cumsum(prob)
    u = u / u[-1]
    s = rng.random(int(n))
    indices = np.minimum(np.searchsorted(u, s, side="right"), len(u) - 1)
    return support[indices], indices


@dataclass(frozen=True)
class FiniteMarkov:
    """A context tree unrolled onto the pasts of length height.

    transitions[i] is the next-symbol distribution after past i; context_of[i]
    is the tree context that past i ends with.
    """
    indexer: PastIndexer
    transitions: np.ndarray
    stationary: np.ndarray
    context_of: np.ndarray

    @property
    def pasts(self) -> np.ndarray:
        return self.indexer.pasts

    @property
    def shift(self) -> np.ndarray:
        return self.indexer.shift


def to_finite_markov(
    tree: ContextTree,
    P: np.ndarray,
    alphabet: Alphabet,
    max_states: int = DEFAULT_MAX_STATES,
) -> FiniteMarkov:
    """Finite-Markov representation of a complete context tree of order height."""
    if tree.is_empty:
        raise ValueError("the empty tree has no finite-Markov representation")
    P = check_transition_probabilities(tree, P, alphabet)
    idx = PastIndexer(len(alphabet), tree.height, max_states=max_states)
    context_of = np.empty(len(idx), dtype=np.int64)
    for i in range(len(idx)):
        c = tree.context_index(idx.past(i))
        if c is None:
            raise ValueError(
                f"tree is not complete: past {alphabet.decode(idx.past(i))} matches no context"
            )
        context_of[i] = c
    transitions = P[context_of]
    stationary = stationary_distribution(transitions, shift=idx.shift)
    logger.debug("finite-Markov representation: %d pasts of length %d", len(idx), tree.height)
    return FiniteMarkov(indexer=idx, transitions=transitions, stationary=stationary, context_of=context_of)


def generate_sequence(
    tree: ContextTree,
    P: np.ndarray,
    alphabet: Alphabet,
    length: int,
    rng: np.random.Generator | None = None,
    fm: Optional[FiniteMarkov] = None,
) -> np.ndarray:
    """Simulate an encoded sequence of the given length from a context-tree model.

    The first height symbols are uniform over the alphabet; every later symbol
    is drawn from the transition row of the current past of length height.
    """
    length = int(length)
    if length <= 0:
        raise ValueError("length must be positive")
    if rng is None:
        rng = np.random.default_rng()
    if fm is None:
        fm = to_finite_markov(tree, P, alphabet)
    m = len(alphabet)
    h = tree.height
    seq = np.empty(length, dtype=np.int64)
    head = min(h, length)
    _, seq[:head] = sample_discrete(np.arange(m), np.ones(m) / m, head, rng=rng)
    if length <= h:
        return seq
    cdf = np.cumsum(fm.transitions, axis=1)
    cdf = cdf / cdf[:, -1:]
    shift = fm.shift
    u = rng.random(length - h)
    cur = fm.indexer.index_of(seq[:h])
    for t in range(h, length):
        a = min(int(np.searchsorted(cdf[cur], u[t - h], side="right")), m - 1)
        seq[t] = a
        cur = shift[cur, a]
    logger.debug("generated %d symbols from a tree of height %d", length, h)
    return seq


def random_transition_probabilities(
    tree: ContextTree,
    concentration: float = 1.0,
    rng: np.random.Generator | None = None,
) -> np.ndarray:
    """Dirichlet-distributed next-symbol distributions, one row per context."""
    if rng is None:
        rng = np.random.default_rng()
    m = len(tree.alphabet)
    return rng.dirichlet(np.full(m, float(concentration)), size=len(tree))


def random_context_tree(
    alphabet: Alphabet,
    height: int,
    branch_prob: float = 0.5,
    rng: np.random.Generator | None = None,
) -> ContextTree:
    """Random complete context tree of exactly the given height.

    Each node is split into m older-symbol children with probability
    branch_prob; one randomly chosen branch per level is always split so the
    longest context has length height.
    """
    if height < 1:
        raise ValueError("height must be at least 1")
    if rng is None:
        rng = np.random.default_rng()
    m = len(alphabet)
    contexts: List[Tuple[int, ...]] = []

    def grow(suffix: Tuple[int, ...], forced: bool) -> None:
        if len(suffix) == height:
            contexts.append(suffix)
            return
        if len(suffix) > 0 and not forced and rng.random() >= branch_prob:
            contexts.append(suffix)
            return
        keep = int(rng.integers(0, m)) if forced else -1
        for a in range(m):
            grow((a,) + suffix, forced and a == keep)

    grow((), True)
    return ContextTree([alphabet.decode(c) for c in contexts], alphabet)
