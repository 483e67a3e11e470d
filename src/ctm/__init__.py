"""
Context-tree model (CTM) library: empirical subsequence probabilities,
entropy-rate trajectories and log-likelihoods for variable-length Markov
processes.

Estimator Functions:
- empirical_subsequence_probabilities: simulates a context-tree model and
  estimates, in one streaming pass, the occurrence probabilities of all pasts
  of length 1..height, the transition probabilities at length height, and the
  running empirical entropy rate (bits/symbol)
- StreamingEstimator: the single-pass estimator on an already encoded sequence

Likelihood Functions:
- tree_log_likelihood: log-likelihood of an input/response pair under a tree;
  -inf when the tree cannot explain the inputs

Supporting pieces thread an explicit Alphabet (symbol <-> index bijection) and
numpy Generators (rng=) for reproducibility.
"""

from .alphabet import Alphabet
from .errors import CTMError, ModelMismatch, ResourceExhausted
from .tree import ContextTree, ContextCounts, classify
from .indexer import PastIndexer, build_indexers
from .markov import (
    stationary_distribution,
    sample_discrete,
    FiniteMarkov,
    to_finite_markov,
    generate_sequence,
    random_transition_probabilities,
    random_context_tree,
)
from .estimator import (
    EmpiricalEstimate,
    StreamingEstimator,
    empirical_subsequence_probabilities,
    entropy_rate_bits,
)
from .likelihood import tree_log_likelihood
from .io import load_model, save_model, load_symbol_column, save_estimate_npz

__all__ = [
    "Alphabet",
    "CTMError",
    "ModelMismatch",
    "ResourceExhausted",
    "ContextTree",
    "ContextCounts",
    "classify",
    "PastIndexer",
    "build_indexers",
    "stationary_distribution",
    "sample_discrete",
    "FiniteMarkov",
    "to_finite_markov",
    "generate_sequence",
    "random_transition_probabilities",
    "random_context_tree",
    "EmpiricalEstimate",
    "StreamingEstimator",
    "empirical_subsequence_probabilities",
    "entropy_rate_bits",
    "tree_log_likelihood",
    "load_model",
    "save_model",
    "load_symbol_column",
    "save_estimate_npz",
]
