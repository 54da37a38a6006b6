"""Harmonic function solution on a partitioned graph Laplacian.

With the Laplacian split at the labelled/unlabelled boundary the harmonic
function satisfies

    Δ_uu f_u = -Δ_ul f_l

where ``f_l`` is the label indicator matrix of the labelled observations and
``f_u`` the class scores of the unlabelled ones.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
import scipy.sparse as sp
from scipy.linalg import LinAlgError, solve
from scipy.sparse import csgraph
from scipy.sparse.linalg import LinearOperator, cg

from .exceptions import SingularSystemError
from .logging_utils import get_logger

logger = get_logger(__name__)

EPS = np.finfo(float).eps


@dataclass(frozen=True)
class SolverConfig:
    """Numerical configuration of the conjugate gradient solver."""

    tolerance: float = 1e-10
    max_iter: Optional[int] = None

    def normalized(self) -> "SolverConfig":
        tolerance = min(max(1e-15, float(self.tolerance)), 1e-1)
        max_iter = None if self.max_iter is None else int(max(1, self.max_iter))
        return SolverConfig(tolerance=tolerance, max_iter=max_iter)


class _IterationCounter:
    def __init__(self) -> None:
        self.count = 0

    def __call__(self, _xk: np.ndarray) -> None:
        self.count += 1


def clamp_probabilities(values: np.ndarray) -> np.ndarray:
    return np.clip(values, EPS, 1.0 - EPS)


def _check_reachability(A: sp.csr_matrix, n_labelled: int) -> None:
    graph = sp.csr_matrix(A, dtype=float, copy=True)
    graph.eliminate_zeros()
    _, component = csgraph.connected_components(graph, directed=False)

    labelled_components = np.unique(component[:n_labelled])
    unreachable = ~np.isin(component[n_labelled:], labelled_components)
    if unreachable.any():
        raise SingularSystemError(
            f"Система не имеет единственного решения: {int(unreachable.sum())} неразмеченных "
            "наблюдений не связаны ни с одним размеченным наблюдением в графе. "
            "Увеличьте k или измените способ построения графа."
        )


def _solve_exact(L_uu: sp.csr_matrix, rhs: np.ndarray) -> np.ndarray:
    try:
        return solve(L_uu.toarray(), rhs, assume_a="pos")
    except LinAlgError as exc:
        raise SingularSystemError(
            "Матрица Δ_uu вырождена: некоторые неразмеченные наблюдения не связаны "
            "ни с одним размеченным наблюдением. Увеличьте k или измените способ "
            "построения графа."
        ) from exc


def _solve_cg(L_uu: sp.csr_matrix, rhs: np.ndarray, config: SolverConfig) -> np.ndarray:
    # Диагональ Δ_uu как предобусловливатель (Якоби)
    inv_diag = 1.0 / L_uu.diagonal()
    M = LinearOperator(L_uu.shape, matvec=lambda r: inv_diag * np.ravel(r), dtype=float)

    counter = _IterationCounter()
    f1, info = cg(L_uu, rhs, rtol=config.tolerance, atol=0.0, maxiter=config.max_iter, M=M, callback=counter)
    # scipy >= 1.12 сообщает только info = 0 (сошёлся) или info > 0 (число итераций)
    if info != 0:
        logger.warning("CG не сошёлся за %d итераций, используется последнее приближение", info)
    logger.debug("CG: %d итераций", counter.count)

    # CG приближённый: значения могут немного выходить за (0, 1)
    f1 = clamp_probabilities(f1)

    f_u = np.empty((rhs.shape[0], 2))
    f_u[:, 0] = f1
    f_u[:, 1] = 1.0 - f1
    return f_u


def solve_harmonic_function(
    A,
    Y: np.ndarray,
    *,
    exact: bool = False,
    config: SolverConfig | None = None,
) -> np.ndarray:
    """Class scores for the unlabelled observations, shape ``(N - L, 2)``.

    ``A`` is an N×N symmetric adjacency matrix whose first ``L = len(Y)`` rows
    and columns belong to the labelled observations. ``exact=True`` uses a direct
    dense solve of both columns; otherwise only the first column is solved with
    preconditioned conjugate gradients and the second is its complement.
    """
    cfg = (config or SolverConfig()).normalized()
    A = sp.csr_matrix(A, dtype=float)
    Y = np.asarray(Y, dtype=float)
    n = A.shape[0]
    l = Y.shape[0]

    if l == n:
        return np.empty((0, 2))

    _check_reachability(A, l)

    # Δ = D - A
    laplacian = csgraph.laplacian(A).tocsr()
    L_uu = laplacian[l:, l:]
    L_ul = laplacian[l:, :l]

    logger.info("Решение гармонической функции: %d размеченных, %d неразмеченных, exact=%s", l, n - l, exact)

    if exact:
        rhs = -(L_ul @ Y)
        return _solve_exact(L_uu, rhs)

    rhs = -(L_ul @ Y[:, 0])
    return _solve_cg(L_uu, rhs, cfg)
