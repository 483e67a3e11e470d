"""
Command-line interfaces:

- ctm-estimate: simulate a context-tree model (from a JSON model file or a
  random complete tree), estimate subsequence and transition probabilities in
  one streaming pass, and compare the final empirical entropy rate with the
  model's analytic entropy rate.

- ctm-loglik: log-likelihood of input/response sequences read from CSV
  columns under a context tree from a JSON model file.
"""

from __future__ import annotations
import argparse
import json
import logging
import math
import sys
import numpy as np
from .alphabet import Alphabet
from .errors import CTMError, ModelMismatch
from .estimator import DEFAULT_SEQ_LENGTH, empirical_subsequence_probabilities, entropy_rate_bits
from .indexer import DEFAULT_MAX_STATES
from .io import load_model, load_symbol_column, save_estimate_npz, save_model
from .likelihood import tree_log_likelihood
from .markov import random_context_tree, random_transition_probabilities, to_finite_markov


def _parse_col(col: str) -> str | int:
    try:
        return int(col)
    except ValueError:
        return col


def run_estimate(argv: list[str] | None = None) -> None:
    """Estimate empirical probabilities and the entropy-rate trajectory."""
    p = argparse.ArgumentParser(prog="ctm-estimate", description="Empirical subsequence probabilities of a context-tree model")
    p.add_argument("--model", type=str, help="JSON model file (alphabet, contexts, P)")
    p.add_argument("--random_tree", action="store_true", help="Use a random complete tree instead of --model")
    p.add_argument("--k", type=int, default=2, help="Alphabet size for --random_tree")
    p.add_argument("--height", type=int, default=3, help="Tree height for --random_tree")
    p.add_argument("--branch_prob", type=float, default=0.5)
    p.add_argument("--concentration", type=float, default=1.0, help="Dirichlet concentration of random rows")
    p.add_argument("--n", type=int, default=DEFAULT_SEQ_LENGTH, help="Length of the simulated sequence")
    p.add_argument("--seed", type=int, default=12345)
    p.add_argument("--max_states", type=int, default=DEFAULT_MAX_STATES, help="Largest past enumeration allowed")
    p.add_argument("--out_npz", type=str, help="Save estimates as numpy arrays")
    p.add_argument("--save_model", type=str, help="Write the (random) model as JSON")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    rng = np.random.default_rng(args.seed)

    try:
        if args.model:
            tree, P, alphabet = load_model(args.model)
        elif args.random_tree:
            alphabet = Alphabet.of_size(args.k)
            tree = random_context_tree(alphabet, args.height, branch_prob=args.branch_prob, rng=rng)
            P = random_transition_probabilities(tree, concentration=args.concentration, rng=rng)
        else:
            p.print_help(sys.stdout)
            return
        if args.save_model:
            save_model(args.save_model, tree, P, alphabet)

        print("\n=== CTM estimate: starting ===")
        fm = to_finite_markov(tree, P, alphabet, max_states=args.max_states)
        est = empirical_subsequence_probabilities(
            tree, P, alphabet, seq_length=args.n, rng=rng, max_states=args.max_states, fm=fm
        )
    except (CTMError, ValueError, OSError) as e:
        print(f"Error: {e}")
        raise SystemExit(2)

    for k in range(1, est.height + 1):
        pk = est.probabilities_at(k)
        print(f"[Depth {k}] pasts={len(pk)}  sum={float(pk.sum()):.6g}  max={float(pk.max()):.6g}")
    analytic = entropy_rate_bits(fm.stationary, fm.transitions)
    emp = est.entropy_rate
    diff = abs(emp - analytic) if math.isfinite(emp) else float("nan")
    print(f"[Entropy rate] empirical={emp:.6g}  analytic={analytic:.6g}  abs diff={diff:.3g}")

    if args.out_npz:
        save_estimate_npz(args.out_npz, est)

    summary = {
        "contexts": [alphabet.decode(c) for c in tree.contexts],
        "height": est.height,
        "n": est.sequence_length,
        "seed": args.seed,
        "entropy_rate": emp if math.isfinite(emp) else None,
        "analytic_entropy_rate": analytic,
    }
    print(json.dumps(summary))
    print("=== CTM estimate: done ===")


def run_loglik(argv: list[str] | None = None) -> None:
    """Log-likelihood of CSV input/response columns under a model."""
    p = argparse.ArgumentParser(prog="ctm-loglik", description="Context-tree log-likelihood of a sequence pair")
    p.add_argument("--model", type=str, help="JSON model file (alphabet, contexts)")
    p.add_argument("--x_csv", type=str, help="CSV file holding the input sequence")
    p.add_argument("--x_col", type=str, default="0")
    p.add_argument("--y_csv", type=str, help="CSV file holding the responses (default: same as --x_csv)")
    p.add_argument("--y_col", type=str, help="Response column (default: --x_col)")
    p.add_argument("--response_lag", type=int, default=1, help="Response to an input window ending at t is Y[t+lag]")
    p.add_argument("--strict", action="store_true", help="Fail when the tree does not explain X")
    p.add_argument("--verbose", action="store_true")
    args = p.parse_args(argv)

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG)
    if not (args.model and args.x_csv):
        p.print_help(sys.stdout)
        return

    try:
        tree, _, alphabet = load_model(args.model)
        X = load_symbol_column(args.x_csv, column=_parse_col(args.x_col))
        y_col = _parse_col(args.y_col if args.y_col is not None else args.x_col)
        Y = load_symbol_column(args.y_csv or args.x_csv, column=y_col)
        logL = tree_log_likelihood(X, Y, tree, alphabet, response_lag=args.response_lag, strict=args.strict)
    except ModelMismatch as e:
        print(f"Model mismatch: {e}")
        raise SystemExit(2)
    except (CTMError, ValueError, OSError) as e:
        print(f"Error: {e}")
        raise SystemExit(2)

    print(f"[LogL] logL={logL:.6g}  contexts={len(tree)}  n={len(X)}")
    result = {
        "model": args.model,
        "n": len(X),
        "contexts": len(tree),
        "logL": logL if math.isfinite(logL) else None,
        "explained": math.isfinite(logL),
    }
    print(json.dumps(result))
