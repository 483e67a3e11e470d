"""
Context trees and the context classifier.

Contexts are written in time order: the oldest symbol first, the most recent
symbol last. A past w is explained by context c when c is a suffix of w.

- ContextTree validates a set of contexts over an Alphabet and stores them as
  index tuples; height is the longest context length (0 for the empty tree).
- classify() assigns every position of an encoded input sequence to the
  unique context ending there, recording positions no context explains.
"""

from __future__ import annotations
from dataclasses import dataclass
from itertools import product
from typing import Dict, List, Optional, Sequence, Tuple
import logging
import numpy as np

from .alphabet import Alphabet

logger = logging.getLogger(__name__)

Context = Tuple[int, ...]


class ContextTree:
    """A validated set of contexts over an alphabet."""
    def __init__(self, contexts: Sequence[Sequence], alphabet: Alphabet):
        self.alphabet = alphabet
        encoded: List[Context] = []
        for c in contexts:
            c = tuple(int(i) for i in alphabet.encode(list(c)))
            if len(c) == 0:
                raise ValueError("contexts must be non-empty")
            encoded.append(c)
        if len(set(encoded)) != len(encoded):
            raise ValueError("duplicate context in tree")
        lookup = set(encoded)
        for c in encoded:
            for j in range(1, len(c)):
                if c[j:] in lookup:
                    raise ValueError(
                        f"context {alphabet.decode(c)} has the context {alphabet.decode(c[j:])} "
                        f"as a suffix; a tree cannot contain both"
                    )
        self.contexts: Tuple[Context, ...] = tuple(encoded)
        self._position: Dict[Context, int] = {c: i for i, c in enumerate(self.contexts)}
        self._lengths: List[int] = sorted({len(c) for c in self.contexts})

    def __len__(self) -> int:
        return len(self.contexts)

    def __repr__(self) -> str:
        shown = [self.alphabet.decode(c) for c in self.contexts]
        return f"ContextTree({shown!r})"

    @property
    def height(self) -> int:
        return self._lengths[-1] if self._lengths else 0

    @property
    def is_empty(self) -> bool:
        return len(self.contexts) == 0

    def context_index(self, past: Sequence[int]) -> Optional[int]:
        """Index of the context that is a suffix of past (encoded), or None."""
        past = tuple(int(s) for s in past)
        n = len(past)
        for L in self._lengths:
            if L > n:
                break
            i = self._position.get(past[n - L:])
            if i is not None:
                return i
        return None

    def is_complete(self) -> bool:
        """True when every past of length height matches a context."""
        if self.is_empty:
            return False
        m = len(self.alphabet)
        return all(self.context_index(w) is not None for w in product(range(m), repeat=self.height))


@dataclass(frozen=True)
class ContextCounts:
    """Occurrences of each context in an input sequence.

    positions[c] holds the input positions t (0-based) where context c ends;
    the matching response is read at t + response_lag.
    """
    counts: np.ndarray
    positions: List[np.ndarray]
    unmatched: np.ndarray
    response_lag: int

    @property
    def has_unmatched(self) -> bool:
        return self.unmatched.size > 0


def classify(tree: ContextTree, X: Sequence[int], response_lag: int = 1) -> ContextCounts:
    """Classify positions of an encoded sequence X by their context.

    Positions t = height-1 .. len(X)-1-response_lag are classified, so that
    every context can be read in full and every occurrence has a response.
    """
    if response_lag < 0:
        raise ValueError("response_lag must be non-negative")
    x = [int(s) for s in X]
    n = len(x)
    k = len(tree)
    hits: List[List[int]] = [[] for _ in range(k)]
    missed: List[int] = []
    start = max(tree.height - 1, 0)
    for t in range(start, n - response_lag):
        lo = max(0, t + 1 - tree.height)
        c = tree.context_index(x[lo:t + 1])
        if c is None:
            missed.append(t)
        else:
            hits[c].append(t)
    logger.debug("classified %d positions into %d contexts (%d unmatched)",
                 max(0, n - response_lag - start), k, len(missed))
    return ContextCounts(
        counts=np.array([len(h) for h in hits], dtype=np.int64),
        positions=[np.array(h, dtype=np.int64) for h in hits],
        unmatched=np.array(missed, dtype=np.int64),
        response_lag=int(response_lag),
    )
