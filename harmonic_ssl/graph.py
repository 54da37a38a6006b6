"""k-nearest-neighbour graph construction.

Observations are connected when either one is among the ``k`` nearest
neighbours of the other. The result is a symmetric adjacency matrix with a zero
diagonal, optionally weighted by a kernel of the distance between the connected
observations.
"""
from typing import Callable, Optional, Union

import numpy as np
import scipy.sparse as sp
from sklearn.metrics import pairwise_distances

from .exceptions import InternalError, InvalidInputError
from .logging_utils import get_logger
from .weighting import RadialBasis

logger = get_logger(__name__)

Metric = Union[str, Callable[[np.ndarray, np.ndarray], float]]


def pairwise_distance_matrix(X: np.ndarray, metric: Metric = "euclidean", n_jobs: Optional[int] = None) -> np.ndarray:
    """Full N×N distance matrix, exactly symmetric.

    ``metric`` can be a scikit-learn metric name, a callable ``f(u, v)`` or an
    object with a ``pairwise(X)`` method such as ``sklearn.metrics.DistanceMetric``.
    The upper triangle is mirrored onto the lower one.
    """
    X = np.asarray(X, dtype=float)
    if hasattr(metric, "pairwise"):
        D = np.asarray(metric.pairwise(X), dtype=float)
    else:
        D = pairwise_distances(X, metric=metric, n_jobs=n_jobs)

    if D.shape != (X.shape[0], X.shape[0]):
        raise InvalidInputError(f"Матрица расстояний имеет неверную форму {D.shape}")
    if np.isnan(D).any():
        raise InvalidInputError("Функция расстояния вернула NaN")
    if (D < 0).any():
        raise InvalidInputError("Функция расстояния вернула отрицательные значения")

    # euclidean в sklearn считается через скалярные произведения и
    # D[i, j] может отличаться от D[j, i] в последнем бите
    return np.triu(D) + np.triu(D, 1).T


def nearest_neighbour_indicator(D: np.ndarray, k: int) -> sp.csr_matrix:
    """0/1 matrix marking the ``k`` nearest neighbours of every row.

    Uses partial selection; among equal distances lower column indices win.
    An observation is never its own neighbour.
    """
    n = D.shape[0]
    is_self = np.eye(n, dtype=bool)
    masked = np.where(is_self, np.inf, D)

    kth = np.partition(masked, k - 1, axis=1)[:, k - 1:k]
    closer = (masked < kth) & ~is_self
    tied = (masked == kth) & ~is_self
    need = k - closer.sum(axis=1, keepdims=True)
    chosen = closer | (tied & (np.cumsum(tied, axis=1) <= need))

    rows, cols = np.nonzero(chosen)
    return sp.csr_matrix((np.ones(len(rows)), (rows, cols)), shape=(n, n))


def apply_weighting(weighting: Callable, distances: np.ndarray) -> np.ndarray:
    # RadialBasis работает с массивами, остальные функции вызываются поэлементно
    if isinstance(weighting, RadialBasis):
        weights = weighting(distances)
    else:
        weights = np.vectorize(weighting, otypes=[float])(distances)
    weights = np.asarray(weights, dtype=float)

    if weights.shape != distances.shape:
        raise InvalidInputError(f"Весовая функция вернула массив формы {weights.shape}")
    if not np.isfinite(weights).all() or (weights < 0).any():
        raise InvalidInputError("Веса рёбер должны быть конечными и неотрицательными")
    return weights


def _check_symmetric(A: sp.csr_matrix) -> None:
    if (A != A.T).nnz != 0:
        raise InternalError("Построенная матрица смежности не симметрична")


def construct_graph(
    X: np.ndarray,
    k: int,
    *,
    metric: Metric = "euclidean",
    weighting: Optional[Callable] = None,
    n_jobs: Optional[int] = None,
) -> sp.csr_matrix:
    """Symmetric k-nearest-neighbour adjacency matrix of the rows of ``X``.

    ``weighting`` maps a single distance to an edge weight, e.g.
    ``lambda r: 1.0 / (1.0 + r)``; it is applied to every connected pair.
    ``RadialBasis`` instances are applied to all distances at once. With
    ``weighting=None`` the matrix is 0/1.
    """
    X = np.asarray(X, dtype=float)
    n = X.shape[0]
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or not 1 <= k <= n - 1:
        raise InvalidInputError(f"k должно быть целым числом от 1 до {n - 1}, получено {k!r}")

    D = pairwise_distance_matrix(X, metric, n_jobs)
    NN = nearest_neighbour_indicator(D, int(k))

    # i и j соединены, если хотя бы один из них входит в k ближайших соседей другого
    A = NN.maximum(NN.T).tocsr()
    A.sort_indices()
    _check_symmetric(A)

    logger.info("Граф: %d вершин, k=%d, %d рёбер", n, k, A.nnz // 2)

    if weighting is None:
        return A

    rows, cols = A.nonzero()
    W = sp.csr_matrix((apply_weighting(weighting, D[rows, cols]), (rows, cols)), shape=(n, n))
    W.sort_indices()
    _check_symmetric(W)
    return W
