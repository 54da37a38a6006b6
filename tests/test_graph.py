"""Tests for k-nearest-neighbour graph construction."""

import numpy as np
import pytest
import scipy.sparse as sp
from sklearn.metrics import DistanceMetric

import harmonic_ssl.graph as graph_module
from harmonic_ssl import (
    InternalError,
    InvalidInputError,
    RadialBasis,
    construct_graph,
    nearest_neighbour_indicator,
    radial_basis,
)


def _edges(A):
    return set(zip(*A.nonzero()))


@pytest.mark.parametrize("k", [1, 3, 7])
def test_adjacency_symmetric_with_zero_diagonal(rng, k):
    X = rng.normal(size=(40, 3))
    A = construct_graph(X, k)

    assert sp.issparse(A)
    assert (A != A.T).nnz == 0
    assert (A.diagonal() == 0).all()
    assert set(np.unique(A.data)) <= {1.0}


@pytest.mark.parametrize("k", [1, 4, 9])
def test_each_row_marks_exactly_k_neighbours(rng, k):
    X = rng.normal(size=(10, 2))
    D = graph_module.pairwise_distance_matrix(X)
    NN = nearest_neighbour_indicator(D, k)

    np.testing.assert_array_equal(np.asarray(NN.sum(axis=1)).ravel(), k)
    assert (NN.diagonal() == 0).all()


def test_every_node_has_at_least_k_edges(rng):
    A = construct_graph(rng.normal(size=(30, 2)), 4)
    assert (np.diff(A.indptr) >= 4).all()


def test_ties_broken_by_index():
    D = graph_module.pairwise_distance_matrix(np.array([[0.0], [1.0], [2.0]]))
    NN = nearest_neighbour_indicator(D, 1).toarray()
    # the middle point is equally far from both ends
    np.testing.assert_array_equal(NN[1], [1, 0, 0])


def test_self_never_selected_even_among_infinite_distances():
    D = np.full((3, 3), np.inf)
    np.fill_diagonal(D, 0.0)
    NN = nearest_neighbour_indicator(D, 2).toarray()
    np.testing.assert_array_equal(NN, 1 - np.eye(3))


def test_weighted_graph_keeps_connectivity_pattern(rng):
    X = rng.normal(size=(25, 2))
    A = construct_graph(X, 3)
    W = construct_graph(X, 3, weighting=RadialBasis(2.0))

    assert _edges(A) == _edges(W)
    assert (W != W.T).nnz == 0
    assert (W.data > 0).all() and (W.data <= 1).all()


def test_weights_are_kernel_of_distance():
    X = np.array([[0.0, 0.0], [3.0, 4.0], [10.0, 10.0]])
    W = construct_graph(X, 1, weighting=RadialBasis(2.0)).toarray()
    assert W[0, 1] == pytest.approx(np.exp(-(5.0 / 2.0) ** 2))
    assert W[0, 1] == pytest.approx(radial_basis(5.0, 2.0))
    assert W[0, 2] == 0.0


def test_callable_premetric(rng):
    X = rng.normal(size=(15, 2))

    def squared_euclidean(u, v):
        return float(np.sum((u - v) ** 2))

    # monotone in the euclidean distance, so the same neighbours are chosen
    A = construct_graph(X, 3)
    B = construct_graph(X, 3, metric=squared_euclidean)
    assert _edges(A) == _edges(B)


def test_distance_metric_object(rng):
    X = rng.normal(size=(15, 2))
    A = construct_graph(X, 2, metric="manhattan")
    B = construct_graph(X, 2, metric=DistanceMetric.get_metric("manhattan"))
    assert _edges(A) == _edges(B)


def test_parallel_distances_identical(rng):
    X = rng.normal(size=(20, 2))
    A = construct_graph(X, 3, weighting=RadialBasis(1.0))
    B = construct_graph(X, 3, weighting=RadialBasis(1.0), n_jobs=2)
    assert _edges(A) == _edges(B)
    np.testing.assert_allclose(A.toarray(), B.toarray(), rtol=1e-12)


@pytest.mark.parametrize("scale", [1.0, 1e3])
def test_distance_matrix_exactly_symmetric(rng, scale):
    X = scale * rng.normal(size=(300, 5))
    D = graph_module.pairwise_distance_matrix(X)
    assert np.array_equal(D, D.T)
    assert (np.diag(D) == 0).all()


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_weighted_adjacency_exactly_symmetric(seed):
    X = np.random.default_rng(seed).normal(size=(300, 5))
    W = construct_graph(X, 10, weighting=RadialBasis(2.0))
    assert (W != W.T).nnz == 0
    assert np.array_equal(W.toarray(), W.toarray().T)


def test_asymmetric_weights_are_internal_error(monkeypatch, rng):
    monkeypatch.setattr(graph_module, "apply_weighting", lambda weighting, d: np.arange(1.0, len(d) + 1.0))
    with pytest.raises(InternalError):
        construct_graph(rng.normal(size=(10, 2)), 3, weighting=RadialBasis(2.0))


def test_scalar_weighting_applied_to_each_edge(rng):
    X = rng.normal(size=(20, 2))
    D = graph_module.pairwise_distance_matrix(X)
    W = construct_graph(X, 3, weighting=lambda r: 1.0 if r < 1 else 0.5)

    rows, cols = W.nonzero()
    weights = np.asarray(W[rows, cols]).ravel()
    np.testing.assert_array_equal(weights, np.where(D[rows, cols] < 1, 1.0, 0.5))
    assert _edges(W) == _edges(construct_graph(X, 3))


def test_scalar_weighting_matches_kernel(rng):
    X = rng.normal(size=(20, 2))
    W = construct_graph(X, 4, weighting=RadialBasis(1.5))
    V = construct_graph(X, 4, weighting=lambda r: float(np.exp(-(r / 1.5) ** 2)))
    np.testing.assert_allclose(V.toarray(), W.toarray(), rtol=1e-12)


@pytest.mark.parametrize("bad", [np.inf, np.nan, -1.0])
def test_invalid_weights_rejected(rng, bad):
    with pytest.raises(InvalidInputError):
        construct_graph(rng.normal(size=(8, 2)), 2, weighting=lambda r: bad)


@pytest.mark.parametrize("k", [1, 3, 6])
def test_partial_selection_matches_stable_sort(rng, k):
    # integer distances give plenty of ties
    D = rng.integers(0, 4, size=(30, 30)).astype(float)
    D = np.triu(D, 1) + np.triu(D, 1).T
    NN = nearest_neighbour_indicator(D, k).toarray()

    expected = np.zeros_like(NN)
    for i in range(len(D)):
        others = [j for j in np.argsort(D[i], kind="stable") if j != i]
        expected[i, others[:k]] = 1.0
    np.testing.assert_array_equal(NN, expected)


def test_negative_distance_rejected(rng):
    with pytest.raises(InvalidInputError):
        construct_graph(rng.normal(size=(5, 2)), 2, metric=lambda u, v: -1.0)


@pytest.mark.parametrize("k", [0, 5, 2.5, True])
def test_k_out_of_range_rejected(rng, k):
    with pytest.raises(InvalidInputError):
        construct_graph(rng.normal(size=(5, 2)), k)


def test_asymmetric_result_is_internal_error(monkeypatch, rng):
    class Broken:
        T = None

        def maximum(self, other):
            return sp.csr_matrix(np.array([[0.0, 1.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 0.0]]))

    monkeypatch.setattr(graph_module, "nearest_neighbour_indicator", lambda D, k: Broken())
    with pytest.raises(InternalError):
        construct_graph(rng.normal(size=(3, 2)), 1)


def test_radial_basis_requires_positive_bandwidth():
    with pytest.raises(ValueError):
        RadialBasis(0.0)
