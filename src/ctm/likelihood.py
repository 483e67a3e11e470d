"""
Log-likelihood of an input/response sequence pair under a context tree.

For the empty tree the responses are treated as i.i.d. and the multinomial
maximum-likelihood value is returned. Otherwise every input position is
classified by its context, the response following each occurrence is counted,
and the maximum-likelihood transition probabilities of each context give

    logL = sum_{c,a: N[c,a] > 0} N[c,a] * (log N[c,a] - log ss[c])

in natural log units. A tree that leaves some past of X unexplained assigns
zero probability to the data and the result is -inf.
"""

from __future__ import annotations
from typing import Sequence
import logging
import math
import numpy as np

from .alphabet import Alphabet
from .errors import ModelMismatch
from .tree import ContextTree, classify

logger = logging.getLogger(__name__)


def _multinomial_loglik(N: np.ndarray, total: float) -> float:
    ind = N > 0
    return float(np.sum(N[ind] * (np.log(N[ind]) - math.log(total))))


def tree_log_likelihood(
    X: Sequence,
    Y: Sequence | None,
    tree: ContextTree,
    alphabet: Alphabet,
    response_lag: int = 1,
    strict: bool = False,
) -> float:
    """Log-likelihood of responses Y given inputs X under a context tree.

    - X and Y are symbol sequences of equal length over alphabet; with
      Y=None the sequence X is its own response (a plain context-tree model).
    - response_lag aligns responses to inputs: an occurrence of a context
      ending at input position t is paired with Y[t + response_lag].
    - Returns -inf when some position of X matches no context, or raises
      ModelMismatch in that case if strict=True.
    """
    if Y is None:
        Y = X
    if len(X) != len(Y):
        raise ValueError(f"X and Y must have equal length, got {len(X)} and {len(Y)}")
    if tree.alphabet != alphabet:
        raise ValueError("tree was built over a different alphabet")
    x = alphabet.encode(X)
    y = alphabet.encode(Y)
    m = len(alphabet)

    if tree.is_empty:
        if len(y) == 0:
            return 0.0
        N = np.bincount(y, minlength=m).astype(float)
        return _multinomial_loglik(N, float(len(y)))

    cc = classify(tree, x, response_lag=response_lag)
    if cc.has_unmatched:
        logger.debug("%d positions of X match no context", cc.unmatched.size)
        if strict:
            raise ModelMismatch(
                f"{cc.unmatched.size} positions have no matching context "
                f"(first at position {int(cc.unmatched[0])})"
            )
        return -math.inf

    N = np.zeros((len(tree), m), dtype=float)
    for c, idx in enumerate(cc.positions):
        if idx.size:
            N[c] = np.bincount(y[idx + response_lag], minlength=m)
    ss = cc.counts.astype(float)
    B = np.repeat(ss[:, None], m, axis=1)
    ind = N > 0
    return float(np.sum(N[ind] * (np.log(N[ind]) - np.log(B[ind]))))
