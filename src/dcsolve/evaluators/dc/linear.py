"""Direct solve of the nodal system with explicit singularity detection."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional
import warnings

import numpy as np
import scipy.linalg as la
import scipy.sparse as sp
import scipy.sparse.linalg as spla

from dcsolve.config import SolverOptions
from dcsolve.errors import UnsolvableNetworkError


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LinearSolution:
    """Solution vector plus factorisation diagnostics."""

    x: np.ndarray
    method: str
    min_pivot: Optional[float] = None
    cond: Optional[float] = None


def select_method(size: int, options: SolverOptions) -> str:
    if options.method != "auto":
        return options.method
    return "sparse" if size > options.sparse_threshold else "dense"


def _check_pivots(pivots: np.ndarray, threshold: float) -> float:
    magnitudes = np.abs(pivots)
    min_pivot = float(magnitudes.min())
    if not np.isfinite(magnitudes).all() or min_pivot < threshold:
        raise UnsolvableNetworkError(
            "Nodal matrix is singular: part of the network has no path to ground.",
            {"min_pivot": min_pivot, "threshold": threshold, "row": int(np.argmin(magnitudes))},
        )
    return min_pivot


def _solve_dense(G: np.ndarray, I: np.ndarray, threshold: float) -> tuple[np.ndarray, float]:
    with warnings.catch_warnings():
        # Exact zero pivots are reported through _check_pivots.
        warnings.simplefilter("ignore", la.LinAlgWarning)
        lu, piv = la.lu_factor(G, check_finite=False)
    min_pivot = _check_pivots(np.diag(lu), threshold)
    return la.lu_solve((lu, piv), I, check_finite=False), min_pivot


def _solve_sparse(
    G: np.ndarray,
    I: np.ndarray,
    threshold: float,
    permc_spec: str,
) -> tuple[np.ndarray, float]:
    try:
        lu = spla.splu(sp.csc_matrix(G), permc_spec=permc_spec)
    except RuntimeError as exc:
        raise UnsolvableNetworkError(
            "Nodal matrix is singular: sparse LU factorisation failed.",
            {"error": str(exc)},
        ) from exc
    min_pivot = _check_pivots(lu.U.diagonal(), threshold)
    return lu.solve(I), min_pivot


def equilibrate_rows(G: np.ndarray, I: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Scale each row of ``G x = I`` to unit max-norm; all-zero rows are left as they are."""
    scale = np.abs(G).max(axis=1)
    scale[scale == 0.0] = 1.0
    return G / scale[:, None], I / scale


def solve_linear_system(
    G: np.ndarray,
    I: np.ndarray,
    options: Optional[SolverOptions] = None,
) -> LinearSolution:
    """
    Solve ``G x = I`` by LU with partial pivoting.

    Rows are equilibrated first so source identity rows and conductance rows
    of any magnitude are compared on the same scale. On the equilibrated
    matrix, a pivot below ``pivot_tolerance``, a failed factorisation, a
    non-finite solution or a condition number above ``cond_threshold``
    raises ``UnsolvableNetworkError``; no NaN or infinite voltages are ever
    returned.
    """
    options = options or SolverOptions()
    G = np.asarray(G, dtype=float)
    I = np.asarray(I, dtype=float)
    size = G.shape[0] if G.ndim == 2 else -1
    if G.shape != (size, size) or I.shape != (size,):
        raise ValueError(f"Expected square G and matching I, got {G.shape} and {I.shape}.")
    if size == 0:
        return LinearSolution(x=np.zeros(0, dtype=float), method="empty")
    if not (np.isfinite(G).all() and np.isfinite(I).all()):
        raise UnsolvableNetworkError("Nodal system contains non-finite entries.")

    G, I = equilibrate_rows(G, I)
    method = select_method(size, options)
    threshold = options.pivot_tolerance
    if method == "sparse":
        x, min_pivot = _solve_sparse(G, I, threshold, options.permc_spec)
    else:
        x, min_pivot = _solve_dense(G, I, threshold)

    if not np.isfinite(x).all():
        raise UnsolvableNetworkError("Nodal solve produced non-finite voltages.")

    cond: Optional[float] = None
    if options.enable_diagnostics and size <= options.diagnostics_max_size:
        cond = float(np.linalg.cond(G))
        if not np.isfinite(cond) or cond > options.cond_threshold:
            raise UnsolvableNetworkError(
                "Nodal matrix is ill-conditioned.",
                {"cond": cond, "threshold": options.cond_threshold},
            )

    logger.debug("Solved %d unknowns with %s LU (min pivot %.3g).", size, method, min_pivot)
    return LinearSolution(x=np.asarray(x, dtype=float), method=method, min_pivot=min_pivot, cond=cond)
