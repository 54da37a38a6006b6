"""Harmonic function classifier: tabular and adjacency-matrix entry points.

Based on X. Zhu, Z. Ghahramani, J. Lafferty, "Semi-Supervised Learning Using
Gaussian Fields and Harmonic Functions" (ICML 2003) and chapter 4 of Zhu's
thesis (2005).
"""
from typing import Callable, Optional, Sequence

import numpy as np
import pandas as pd
import scipy.sparse as sp

from .assign import assign_class, class_prior
from .exceptions import InvalidInputError
from .graph import Metric, construct_graph
from .logging_utils import get_logger
from .preprocessing import check_two_classes, distinct_classes, label_matrix, prepare_input_data
from .solver import SolverConfig, solve_harmonic_function
from .weighting import RadialBasis

logger = get_logger(__name__)


def predict(
    data: pd.DataFrame,
    target: str,
    features: Sequence[str],
    id: Optional[str] = None,
    *,
    cmn: bool = True,
    k: int = 5,
    metric: Metric = "euclidean",
    weighting: Optional[Callable] = RadialBasis(2.0),
    exact: bool = False,
    config: Optional[SolverConfig] = None,
    n_jobs: Optional[int] = None,
) -> pd.DataFrame:
    """Predict the class of every row of ``data`` whose ``target`` is missing.

    Returns one row per unlabelled observation with the raw class scores
    (``prob_class1``, ``prob_class2``), the class mass normalised scores when
    ``cmn`` is set, and ``pred_class``. ``weighting=None`` builds an unweighted
    graph.
    """
    X, Y, classes, ids = prepare_input_data(data, target, features, id)

    A = construct_graph(X, k, metric=metric, weighting=weighting, n_jobs=n_jobs)
    Y_hat = solve_harmonic_function(A, Y, exact=exact, config=config)

    return assign_class(Y_hat, classes, ids=ids, prior=class_prior(Y) if cmn else None)


def predict_graph(
    A,
    target: Sequence,
    *,
    id: Optional[Sequence] = None,
    cmn: bool = True,
    exact: bool = False,
    config: Optional[SolverConfig] = None,
) -> pd.DataFrame:
    """Same as :func:`predict` for a precomputed adjacency matrix.

    ``A`` must list the labelled observations first, in the same order as
    ``target``; missing entries of ``target`` mark the unlabelled observations.
    """
    A = sp.csr_matrix(A, dtype=float)
    target = pd.Series(list(target), dtype=object)
    n = len(target)

    if A.shape != (n, n):
        raise InvalidInputError(f"Матрица смежности {A.shape} не согласована с длиной целевого вектора {n}")
    if (A != A.T).nnz != 0:
        raise InvalidInputError("Матрица смежности должна быть симметричной")
    if not np.isfinite(A.data).all():
        raise InvalidInputError("Матрица смежности содержит бесконечные значения или NaN")
    if A.nnz and A.data.min() < 0:
        raise InvalidInputError("Матрица смежности должна быть неотрицательной")

    u_mask = pd.isna(target).to_numpy()
    l = int((~u_mask).sum())
    if u_mask[:l].any():
        raise InvalidInputError("Размеченные наблюдения должны идти перед неразмеченными")

    labels = target[:l].to_numpy(dtype=object)
    classes = distinct_classes(labels)
    check_two_classes(classes)
    Y = label_matrix(labels, classes)

    if id is not None and len(id) != n - l:
        raise InvalidInputError(f"Ожидалось {n - l} идентификаторов, получено {len(id)}")

    logger.info("Матрица смежности задана явно: %d вершин, %d размеченных", n, l)
    Y_hat = solve_harmonic_function(A, Y, exact=exact, config=config)
    return assign_class(Y_hat, classes, ids=id, prior=class_prior(Y) if cmn else None)
