"""
Alphabet: an explicit bijection between symbols and dense indices 0..m-1.

Every table in the library is indexed by symbol index, never by the symbol
itself, so trees, sequences and CSV columns are translated here once.
"""

from __future__ import annotations
from typing import Dict, Hashable, Iterable, List, Sequence
import numpy as np


class Alphabet:
    """Ordered finite set of symbols with encode/decode to indices."""
    def __init__(self, symbols: Iterable[Hashable]):
        self.symbols: List[Hashable] = [_plain(s) for s in symbols]
        if len(self.symbols) == 0:
            raise ValueError("alphabet must contain at least one symbol")
        self._index: Dict[Hashable, int] = {}
        for i, s in enumerate(self.symbols):
            try:
                hash(s)
            except TypeError:
                raise ValueError(f"alphabet symbols must be hashable, got {s!r}") from None
            if s in self._index:
                raise ValueError(f"duplicate symbol in alphabet: {s!r}")
            self._index[s] = i

    @classmethod
    def of_size(cls, m: int) -> "Alphabet":
        """The conventional alphabet {0, ..., m-1}."""
        return cls(range(int(m)))

    def __len__(self) -> int:
        return len(self.symbols)

    def __contains__(self, symbol) -> bool:
        return _plain(symbol) in self._index

    def __iter__(self):
        return iter(self.symbols)

    def __eq__(self, other) -> bool:
        return isinstance(other, Alphabet) and self.symbols == other.symbols

    def __repr__(self) -> str:
        return f"Alphabet({self.symbols!r})"

    def index(self, symbol) -> int:
        try:
            return self._index[_plain(symbol)]
        except (KeyError, TypeError):
            raise ValueError(f"symbol {symbol!r} is not in the alphabet {self.symbols!r}") from None

    def encode(self, symbols: Sequence) -> np.ndarray:
        """Map a sequence of symbols to an int array of indices."""
        return np.fromiter((self.index(s) for s in symbols), dtype=np.int64)

    def decode(self, indices: Sequence[int]) -> List[Hashable]:
        """Map indices back to symbols."""
        m = len(self.symbols)
        out = []
        for i in indices:
            i = int(i)
            if not 0 <= i < m:
                raise ValueError(f"index {i} out of range for alphabet of size {m}")
            out.append(self.symbols[i])
        return out


def _plain(symbol):
    # numpy scalars hash like their Python counterparts but keep them uniform
    if isinstance(symbol, np.generic):
        return symbol.item()
    return symbol
