"""
Per-depth enumeration of pasts and sliding-window shift tables.

A PastIndexer for depth k enumerates all m**k pasts in lexicographic order
(first symbol varies slowest, as itertools.product does) and keeps a hash map
from past tuple to index. Its shift table answers "which past do I get when I
drop the oldest symbol of past i and append a" in O(1), so a streaming pass
never searches the enumeration after its one-time seed lookup.
"""

from __future__ import annotations
from itertools import product
from typing import Dict, Optional, Sequence, Tuple
import logging
import numpy as np

from .errors import ResourceExhausted

logger = logging.getLogger(__name__)

DEFAULT_MAX_STATES = 2 ** 20


class PastIndexer:
    """Enumeration of the pasts of one depth with O(1) lookup and shifts."""
    def __init__(self, alphabet_size: int, depth: int, max_states: int = DEFAULT_MAX_STATES):
        self.m = int(alphabet_size)
        self.depth = int(depth)
        if self.m < 1:
            raise ValueError("alphabet_size must be positive")
        if self.depth < 1:
            raise ValueError("depth must be positive")
        n_states = self.m ** self.depth
        if n_states > max_states:
            raise ResourceExhausted(
                f"{self.m}**{self.depth} = {n_states} pasts exceeds the limit of {max_states}"
            )
        try:
            tuples = list(product(range(self.m), repeat=self.depth))
            self.pasts = np.array(tuples, dtype=np.int64).reshape(n_states, self.depth)
            self.pasts.flags.writeable = False
            self._lookup: Dict[Tuple[int, ...], int] = {w: i for i, w in enumerate(tuples)}
        except MemoryError as e:
            raise ResourceExhausted(
                f"cannot enumerate {n_states} pasts of length {self.depth}"
            ) from e
        self._shift: Optional[np.ndarray] = None
        logger.debug("enumerated %d pasts of length %d", n_states, self.depth)

    def __len__(self) -> int:
        return self.pasts.shape[0]

    def index_of(self, past: Sequence[int]) -> int:
        """Index of an encoded past of length depth; KeyError if invalid."""
        return self._lookup[tuple(int(s) for s in past)]

    def past(self, i: int) -> Tuple[int, ...]:
        return tuple(int(s) for s in self.pasts[i])

    @property
    def shift(self) -> np.ndarray:
        """(m**k, m) table: shift[i, a] = index_of(past(i)[1:] + (a,))."""
        if self._shift is None:
            T = np.empty((len(self), self.m), dtype=np.int64)
            for w, i in self._lookup.items():
                tail = w[1:]
                for a in range(self.m):
                    T[i, a] = self._lookup[tail + (a,)]
            T.flags.writeable = False
            self._shift = T
        return self._shift


def build_indexers(
    alphabet_size: int,
    height: int,
    top: Optional[PastIndexer] = None,
    max_states: int = DEFAULT_MAX_STATES,
) -> Dict[int, PastIndexer]:
    """Indexers for depths 1..height.

    When top is given (the indexer behind a finite-Markov representation of
    the tree) it is used for depth height instead of building a new one.
    """
    if height < 1:
        raise ValueError("height must be at least 1")
    if top is not None and (top.depth != height or top.m != alphabet_size):
        raise ValueError("top indexer does not match alphabet size and height")
    out: Dict[int, PastIndexer] = {}
    for k in range(1, height):
        out[k] = PastIndexer(alphabet_size, k, max_states=max_states)
    out[height] = top if top is not None else PastIndexer(alphabet_size, height, max_states=max_states)
    return out
