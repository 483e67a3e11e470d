"""
Empirical subsequence probabilities and entropy-rate trajectory.

A single left-to-right pass over an encoded sequence of length N counts, for
every depth k = 1..height, how often each past of length k occurs, and at
depth height how often each past is followed by each symbol. The current past
of each depth is carried as an index and advanced through the depth's shift
table; only the first occurrence of each depth (the warm-up, positions
1..height) is located by lookup.

After every steady-state position t the entropy rate of the estimate so far
is recorded:

    H_t = sum_s mu_s * h_s,   h_s = -sum_a P[s,a] log2 P[s,a]

with mu the occurrence frequencies of the pasts of length height and P the
row-normalized transition counts (unobserved rows contribute 0, and
0*log2(0) = 0). Positions 1..height carry no estimate and are NaN.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import logging
import numpy as np

from .alphabet import Alphabet
from .indexer import DEFAULT_MAX_STATES, PastIndexer, build_indexers
from .markov import FiniteMarkov, _row_stochastic, generate_sequence, to_finite_markov
from .tree import ContextTree

logger = logging.getLogger(__name__)

DEFAULT_SEQ_LENGTH = 10 ** 6


def _row_entropy_bits(T: np.ndarray) -> np.ndarray:
    """Entropy in bits of each row of a row-stochastic matrix (0 log 0 = 0)."""
    T = np.atleast_2d(np.asarray(T, dtype=float))
    safe = np.where(T > 0, T, 1.0)
    return -(T * np.log2(safe)).sum(axis=1)


def entropy_rate_bits(mu: np.ndarray, transitions: np.ndarray) -> float:
    """Entropy rate sum_s mu_s H(transitions[s]) in bits per symbol.

    transitions may hold raw counts; rows are normalized and zero rows are
    left at zero.
    """
    mu = np.asarray(mu, dtype=float)
    h = _row_entropy_bits(_row_stochastic(transitions))
    return float(mu @ h)


@dataclass(frozen=True)
class EmpiricalEstimate:
    """Result of a streaming pass.

    probabilities[k-1] is the occurrence-probability vector of the pasts of
    length k (indexed like pasts[k]; for k = 1 by symbol index).
    """
    probabilities: List[np.ndarray]
    transitions: np.ndarray
    entropy: np.ndarray
    pasts: Dict[int, np.ndarray]
    shift_tables: Dict[int, np.ndarray]
    height: int
    sequence_length: int

    def probabilities_at(self, k: int) -> np.ndarray:
        if not 1 <= k <= self.height:
            raise ValueError(f"depth must be in 1..{self.height}")
        return self.probabilities[k - 1]

    @property
    def entropy_trajectory(self) -> np.ndarray:
        """Entropy-rate estimates for positions height+1..N."""
        return self.entropy[self.height:]

    @property
    def entropy_rate(self) -> float:
        """Last entropy-rate estimate (NaN when N == height)."""
        return float(self.entropy[-1])


class StreamingEstimator:
    """Single-use estimator of subsequence and transition frequencies."""
    def __init__(
        self,
        alphabet_size: int,
        height: int,
        indexers: Optional[Dict[int, PastIndexer]] = None,
        max_states: int = DEFAULT_MAX_STATES,
    ):
        self.m = int(alphabet_size)
        self.height = int(height)
        if self.height < 1:
            raise ValueError("height must be at least 1")
        if indexers is None:
            indexers = build_indexers(self.m, self.height, max_states=max_states)
        for k in range(1, self.height + 1):
            if k not in indexers or indexers[k].m != self.m or indexers[k].depth != k:
                raise ValueError(f"indexers must cover depths 1..{self.height} over {self.m} symbols")
        self.indexers = indexers
        self.shift: Dict[int, np.ndarray] = {k: indexers[k].shift for k in range(2, self.height + 1)}
        if self.height == 1:
            self.shift[1] = indexers[1].shift
        self.counts: Dict[int, np.ndarray] = {1: np.zeros(self.m, dtype=np.int64)}
        for k in range(2, self.height + 1):
            self.counts[k] = np.zeros(len(indexers[k]), dtype=np.int64)
        self.transition_counts = np.zeros((len(indexers[self.height]), self.m), dtype=np.int64)
        self.last_past: Dict[int, int] = {}
        self._consumed = False

    def _check(self, sequence: Sequence[int]) -> np.ndarray:
        seq = np.asarray(sequence)
        if seq.ndim != 1:
            raise ValueError("sequence must be one-dimensional")
        if seq.size and not np.issubdtype(seq.dtype, np.integer):
            raise ValueError("sequence must hold encoded symbol indices (integers)")
        if len(seq) < self.height:
            raise ValueError(f"sequence length {len(seq)} is shorter than the tree height {self.height}")
        if seq.size and (seq.min() < 0 or seq.max() >= self.m):
            raise ValueError(f"sequence symbols must lie in 0..{self.m - 1}")
        return seq

    def consume(self, sequence: Sequence[int]) -> EmpiricalEstimate:
        """Run the pass over an encoded sequence and return the normalized estimate."""
        if self._consumed:
            raise RuntimeError("a StreamingEstimator processes exactly one sequence")
        x = self._check(sequence).tolist()
        self._consumed = True
        h = self.height
        N = len(x)
        counts, shift, last = self.counts, self.shift, self.last_past
        symbols = counts[1]

        # warm-up: seed the current past of depth p at position p
        for p in range(1, h + 1):
            a = x[p - 1]
            symbols[a] += 1
            for j in range(2, p):
                cur = int(shift[j][last[j], a])
                counts[j][cur] += 1
                last[j] = cur
            if p == 1:
                last[1] = a
            else:
                cur = self.indexers[p].index_of(x[:p])
                counts[p][cur] += 1
                last[p] = cur

        top = counts[h]
        top_shift = shift[h]
        trans = self.transition_counts
        row_h = np.zeros(len(top), dtype=float)
        entropy = np.full(N, np.nan)
        for t in range(h, N):
            a = x[t]
            old = last[h]
            cur = int(top_shift[old, a])
            top[cur] += 1
            trans[old, a] += 1
            last[h] = cur
            row_h[old] = _row_entropy_bits(trans[old] / trans[old].sum())[0]
            if h > 1:
                symbols[a] += 1
                for j in range(2, h):
                    cur = int(shift[j][last[j], a])
                    counts[j][cur] += 1
                    last[j] = cur
            # top.sum() == t - h + 2 windows of length h seen so far
            entropy[t] = float(top @ row_h) / (t - h + 2)

        logger.debug("streamed %d symbols at height %d", N, h)
        return self._finalize(N, entropy)

    def _finalize(self, N: int, entropy: np.ndarray) -> EmpiricalEstimate:
        h = self.height
        probabilities = [self.counts[k] / float(N - k + 1) for k in range(1, h + 1)]
        transitions = _row_stochastic(self.transition_counts)
        for arr in probabilities + [transitions, entropy]:
            arr.flags.writeable = False
        return EmpiricalEstimate(
            probabilities=probabilities,
            transitions=transitions,
            entropy=entropy,
            pasts={k: self.indexers[k].pasts for k in range(1, h + 1)},
            shift_tables={k: self.indexers[k].shift for k in range(2, h + 1)},
            height=h,
            sequence_length=N,
        )


def empirical_subsequence_probabilities(
    tree: ContextTree,
    P: np.ndarray,
    alphabet: Alphabet,
    seq_length: int = DEFAULT_SEQ_LENGTH,
    rng: np.random.Generator | None = None,
    sequence: Sequence[int] | None = None,
    max_states: int = DEFAULT_MAX_STATES,
    fm: Optional[FiniteMarkov] = None,
) -> EmpiricalEstimate:
    """Estimate subsequence probabilities from a realization of a context-tree model.

    - Builds the finite-Markov representation of the tree unless fm is given
      (its shift table is reused for depth height) and the indexers for the
      lower depths.
    - Simulates seq_length symbols, or uses the encoded sequence given.
    - Runs one StreamingEstimator pass and returns its EmpiricalEstimate.
    """
    if tree.is_empty:
        raise ValueError("cannot estimate subsequence probabilities for the empty tree")
    if sequence is None and int(seq_length) <= 0:
        raise ValueError("seq_length must be positive")
    if fm is None:
        fm = to_finite_markov(tree, P, alphabet, max_states=max_states)
    indexers = build_indexers(len(alphabet), tree.height, top=fm.indexer, max_states=max_states)
    if sequence is None:
        sequence = generate_sequence(tree, P, alphabet, int(seq_length), rng=rng, fm=fm)
    est = StreamingEstimator(len(alphabet), tree.height, indexers=indexers)
    return est.consume(sequence)
