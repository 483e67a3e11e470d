"""
Model files, symbol columns and estimate export.

- Models are JSON: {"alphabet": [...], "contexts": [[...], ...], "P": [[...], ...]}
  with contexts written oldest symbol first.
- Symbol sequences are read from one column of a CSV file.
- Estimates are written as plain numpy arrays in an .npz archive.
"""

from __future__ import annotations
import json
from typing import List, Tuple
import numpy as np

from .alphabet import Alphabet
from .estimator import EmpiricalEstimate
from .markov import check_transition_probabilities
from .tree import ContextTree


def load_model(path: str) -> Tuple[ContextTree, np.ndarray, Alphabet]:
    """Load (tree, P, alphabet) from a JSON model file."""
    with open(path, "r") as f:
        spec = json.load(f)
    for key in ("alphabet", "contexts"):
        if key not in spec:
            raise ValueError(f"model file {path} is missing '{key}'")
    alphabet = Alphabet(spec["alphabet"])
    tree = ContextTree(spec["contexts"], alphabet)
    if tree.is_empty:
        return tree, np.zeros((0, len(alphabet))), alphabet
    if "P" not in spec:
        raise ValueError(f"model file {path} is missing 'P'")
    P = check_transition_probabilities(tree, spec["P"], alphabet)
    return tree, P, alphabet


def save_model(path: str, tree: ContextTree, P: np.ndarray, alphabet: Alphabet) -> None:
    """Write a model in the format read by load_model."""
    spec = {
        "alphabet": list(alphabet),
        "contexts": [alphabet.decode(c) for c in tree.contexts],
        "P": np.asarray(P, dtype=float).tolist(),
    }
    with open(path, "w") as f:
        json.dump(spec, f, indent=2)


def _column_values(data: np.ndarray, column: str | int) -> np.ndarray:
    names = data.dtype.names
    if names is not None:
        if isinstance(column, str):
            if column not in names:
                raise ValueError(f"Column '{column}' not found in CSV header.")
            return data[column]
        return data[names[int(column)]]
    if isinstance(column, str):
        raise ValueError(f"Column '{column}' not found: the CSV has no header.")
    return data[:, int(column)] if data.ndim == 2 else data


def _symbol(v):
    v = v.item() if isinstance(v, np.generic) else v
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError(f"numeric symbol {v!r} is not an integer")
        return int(v)
    return v


def load_symbol_column(path: str, column: str | int = 0, skip_header: bool = True) -> List:
    """Load a single column of symbols from a CSV file (by name or index).

    Integral numbers come back as ints and text as strings; whether they are
    valid symbols is decided by the Alphabet they are encoded with.
    """
    data = np.genfromtxt(path, delimiter=",", names=True if skip_header else None, dtype=None, encoding=None)
    x = _column_values(np.atleast_1d(data), column)
    return [_symbol(v) for v in x]


def save_estimate_npz(path: str, estimate: EmpiricalEstimate) -> None:
    """Save probabilities, transitions, entropy and shift tables as arrays."""
    arrays = {
        "transitions": estimate.transitions,
        "entropy": estimate.entropy,
        "height": np.array(estimate.height),
        "sequence_length": np.array(estimate.sequence_length),
    }
    for k in range(1, estimate.height + 1):
        arrays[f"P{k}"] = estimate.probabilities_at(k)
        arrays[f"pasts{k}"] = estimate.pasts[k]
    for k, table in estimate.shift_tables.items():
        arrays[f"shift{k}"] = table
    np.savez(path, **arrays)
