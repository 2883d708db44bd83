# SPDX-License-Identifier: BSD-3-Clause

import pytest

import numpy as np
from numpy.testing import assert_array_almost_equal

from hubminer.data import make_gaussian_blobs
from hubminer.distances import DistanceMatrix, pairwise_distances
from hubminer.exceptions import InvalidInputError
from hubminer.secondary import MutualProximity, mutual_proximity


@pytest.fixture(scope="module")
def distances():
    blobs = make_gaussian_blobs(n_samples=30, n_features=40, random_state=11)
    return pairwise_distances(blobs)


def _empiric_mp_brute_force(D):
    n = D.shape[0]
    mp = np.zeros_like(D)
    for x in range(n):
        for y in range(n):
            if x == y:
                continue
            mp[x, y] = np.sum((D[x] > D[x, y]) & (D[y] > D[x, y])) / n
    return 1. - mp


def test_empiric_matches_definition(distances):
    secondary = mutual_proximity(distances, method="empiric")
    expected = _empiric_mp_brute_force(distances.to_square())
    D = secondary.to_square()
    off_diagonal = ~np.eye(distances.n, dtype=bool)
    assert_array_almost_equal(D[off_diagonal], expected[off_diagonal])


@pytest.mark.parametrize("method", ["normal", "gaussi", "empiric", "exact"])
def test_mp_range(distances, method):
    secondary = MutualProximity(method=method).fit_transform(distances)
    assert isinstance(secondary, DistanceMatrix)
    assert secondary.n == distances.n
    assert np.all(secondary.condensed >= 0.)
    assert np.all(secondary.condensed <= 1.)


def test_mp_parameters(distances):
    mp = MutualProximity().fit(distances)
    D = distances.to_square()
    others = ~np.eye(distances.n, dtype=bool)
    expected_mu = np.array([D[i, others[i]].mean() for i in range(distances.n)])
    expected_sd = np.array([D[i, others[i]].std() for i in range(distances.n)])
    assert_array_almost_equal(mp.mu_, expected_mu)
    assert_array_almost_equal(mp.sd_, expected_sd)


def test_invalid_method(distances):
    with pytest.raises(ValueError):
        MutualProximity(method="magic").fit(distances)


def test_invalid_inputs(distances):
    with pytest.raises(InvalidInputError):
        MutualProximity().fit(distances.to_square())
    mp = MutualProximity().fit(distances)
    with pytest.raises(InvalidInputError):
        mp.transform(DistanceMatrix([1., 2., 3.]))
