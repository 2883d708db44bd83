# SPDX-License-Identifier: BSD-3-Clause

import pytest

import numpy as np
from numpy.testing import assert_array_equal, assert_array_almost_equal

from hubminer.data import Dataset, make_gaussian_blobs
from hubminer.distances import DistanceMatrix, pairwise_distances
from hubminer.exceptions import InvalidInputError, InvalidNeighborhoodSizeError
from hubminer.neighbors import NeighborSetFinder, compute_neighbor_sets

X_TWO_PAIRS = np.array([[0., 0.], [0., 1.], [10., 10.], [10., 11.]])
Y_TWO_PAIRS = np.array([0, 0, 1, 1])


def test_two_pairs_nearest_neighbor():
    nsf = NeighborSetFinder(k=1).fit(X_TWO_PAIRS)
    assert_array_equal(nsf.kneighbors_.ravel(), [1, 0, 3, 2])
    assert_array_almost_equal(nsf.kdistances_.ravel(), [1., 1., 1., 1.])
    assert_array_equal(nsf.occurrence_.total, [1, 1, 1, 1])
    assert nsf.occurrence_.good is None
    assert nsf.occurrence_.bad is None
    assert nsf.hub_rate() == 0.
    assert nsf.antihub_rate() == 0.


def test_two_pairs_all_neighbors():
    nsf = NeighborSetFinder(k=3).fit(X_TWO_PAIRS, Y_TWO_PAIRS)
    assert_array_equal(nsf.kneighbors_[0], [1, 2, 3])
    assert_array_equal(nsf.occurrence_.total, [3, 3, 3, 3])
    assert_array_equal(nsf.occurrence_.good, [1, 1, 1, 1])
    assert_array_equal(nsf.occurrence_.bad, [2, 2, 2, 2])
    assert nsf.hub_rate() == 0.
    assert nsf.antihub_rate() == 0.
    assert nsf.label_mismatch_rate() == pytest.approx(2 / 3)


def test_labeled_nearest_neighbor_has_no_bad_occurrences():
    nsf = NeighborSetFinder(k=1).fit(Dataset(X_TWO_PAIRS, ["a", "a", "b", "b"]))
    assert_array_equal(nsf.occurrence_.good, [1, 1, 1, 1])
    assert_array_equal(nsf.occurrence_.bad, [0, 0, 0, 0])
    assert nsf.label_mismatch_rate() == 0.
    assert_array_equal(nsf.occurrence_.class_occurrence, [[1, 1, 0, 0], [0, 0, 1, 1]])


def test_ties_resolved_by_lower_index():
    nsf = NeighborSetFinder(k=1).fit([[0.], [1.], [-1.]])
    assert_array_equal(nsf.kneighbors_.ravel(), [1, 0, 0])


def test_duplicate_points_never_self():
    nsf = NeighborSetFinder(k=2).fit(np.zeros((4, 3)))
    assert_array_equal(nsf.kneighbors_, [[1, 2], [0, 2], [0, 1], [0, 1]])
    assert_array_equal(nsf.kdistances_, np.zeros((4, 2)))


@pytest.mark.parametrize("k", [0, 4, 5, -1])
def test_invalid_neighborhood_size(k):
    with pytest.raises(InvalidNeighborhoodSizeError):
        NeighborSetFinder(k=k).fit(X_TWO_PAIRS)


@pytest.fixture(scope="module")
def blobs():
    return make_gaussian_blobs(n_samples=60, n_features=20, n_classes=3, random_state=123)


@pytest.mark.parametrize("k", [1, 5, 59])
def test_neighbor_set_invariants(blobs, k):
    nsf = NeighborSetFinder(k=k).fit(blobs)
    n = len(blobs)
    occ = nsf.occurrence_
    assert nsf.kneighbors_.shape == (n, k)
    assert occ.total.sum() == n * k
    assert_array_equal(occ.good + occ.bad, occ.total)
    assert_array_equal(occ.class_occurrence.sum(axis=0), occ.total)
    assert not np.any(nsf.kneighbors_ == np.arange(n)[:, np.newaxis])
    assert np.all(np.diff(nsf.kdistances_, axis=1) >= 0)
    D = pairwise_distances(blobs).to_square()
    assert_array_almost_equal(np.take_along_axis(D, nsf.kneighbors_, axis=1), nsf.kdistances_)
    assert nsf.hubs().size / n == nsf.hub_rate()


def test_neighbor_sets_are_deterministic(blobs):
    first = NeighborSetFinder(k=5, n_jobs=1).fit(blobs)
    second = NeighborSetFinder(k=5, n_jobs=4).fit(blobs)
    assert_array_equal(first.kneighbors_, second.kneighbors_)
    assert_array_equal(first.occurrence_.total, second.occurrence_.total)


def test_precomputed_distance_matrix(blobs):
    dm = pairwise_distances(blobs)
    from_vectors = NeighborSetFinder(k=4).fit(blobs)
    from_matrix = NeighborSetFinder(k=4).fit(dm, blobs.labels)
    assert from_matrix.distance_matrix_ is dm
    assert_array_equal(from_matrix.kneighbors_, from_vectors.kneighbors_)
    assert_array_equal(from_matrix.occurrence_.bad, from_vectors.occurrence_.bad)
    with pytest.raises(InvalidInputError):
        NeighborSetFinder(k=4).fit(dm, [0, 1])


@pytest.mark.parametrize("k_start, k_end", [(3, 10), (10, 3), (1, 59), (5, 5)])
def test_extend_equals_fresh_fit(blobs, k_start, k_end):
    extended = NeighborSetFinder(k=k_start).fit(blobs).extend(k_end)
    fresh = NeighborSetFinder(k=k_end).fit(blobs)
    assert extended.k_ == extended.k == k_end
    assert_array_equal(extended.kneighbors_, fresh.kneighbors_)
    assert_array_almost_equal(extended.kdistances_, fresh.kdistances_)
    assert_array_equal(extended.occurrence_.total, fresh.occurrence_.total)
    assert_array_equal(extended.occurrence_.good, fresh.occurrence_.good)


def test_extend_invalid_size(blobs):
    nsf = NeighborSetFinder(k=3).fit(blobs)
    with pytest.raises(InvalidNeighborhoodSizeError):
        nsf.extend(60)


def test_neighbor_lists_read_only():
    nsf = NeighborSetFinder(k=1).fit(X_TWO_PAIRS)
    with pytest.raises(ValueError):
        nsf.kneighbors_[0, 0] = 2


def test_reverse_neighbors():
    nsf = NeighborSetFinder(k=1).fit([[0.], [1.], [-1.], [5.]])
    # 0 -> 1, 1 -> 0, 2 -> 0, 3 -> 1
    reverse = nsf.reverse_neighbors()
    assert_array_equal(reverse[0], [1, 2])
    assert_array_equal(reverse[1], [0, 3])
    assert reverse[2].size == 0
    assert reverse[3].size == 0
    assert_array_equal(nsf.antihubs(), [2, 3])
    assert_array_equal(nsf.hubs(), [0, 1])
    assert nsf.hubness_skewness() == pytest.approx(0.)


def test_label_entropies():
    nsf = NeighborSetFinder(k=3).fit(X_TWO_PAIRS, Y_TWO_PAIRS)
    expected = -(1 / 3 * np.log2(1 / 3) + 2 / 3 * np.log2(2 / 3))
    assert_array_almost_equal(nsf.kneighbor_entropies(), np.full(4, expected))
    assert_array_almost_equal(nsf.reverse_neighbor_entropies(), np.full(4, expected))


def test_hubness_weights(blobs):
    nsf = NeighborSetFinder(k=5).fit(blobs)
    weights = nsf.penalize_hubness_weights()
    assert np.abs(weights).max() == pytest.approx(1.)
    # More frequent neighbors get lower weights
    order = np.argsort(nsf.occurrence_.total)
    assert np.all(np.diff(weights[order]) <= 1e-12)
    assert np.all(nsf.bad_hubness_weights() > 0)


@pytest.mark.parametrize("method", ["label_mismatch_rate", "kneighbor_entropies",
                                    "reverse_neighbor_entropies", "bad_hubness_weights"])
def test_statistics_require_labels(method):
    nsf = NeighborSetFinder(k=1).fit(X_TWO_PAIRS)
    with pytest.raises(InvalidInputError):
        getattr(nsf, method)()


def test_compute_neighbor_sets():
    kneighbors, occurrence = compute_neighbor_sets(Dataset(X_TWO_PAIRS, Y_TWO_PAIRS), k=1)
    assert_array_equal(kneighbors.ravel(), [1, 0, 3, 2])
    assert_array_equal(occurrence.good, [1, 1, 1, 1])
    kneighbors, occurrence = compute_neighbor_sets(X_TWO_PAIRS, k=1, distance_fn="manhattan")
    assert_array_equal(kneighbors.ravel(), [1, 0, 3, 2])
    assert occurrence.k == 1


def test_precomputed_matrix_with_ties():
    dm = DistanceMatrix([1., 1., 1., 1., 1., 1.])
    nsf = NeighborSetFinder(k=2).fit(dm)
    assert_array_equal(nsf.kneighbors_, [[1, 2], [0, 2], [0, 1], [0, 1]])
