# SPDX-License-Identifier: BSD-3-Clause

import pytest

import numpy as np
from numpy.testing import assert_array_almost_equal, assert_array_equal

from hubminer.distances import Distance, pairwise_distances
from hubminer.exceptions import InvalidInputError, InvalidNeighborhoodSizeError, InvalidRangeError
from hubminer.meta import ExponentTrial, MinkowskiDegreeAutoFinder, candidate_exponents, find_best_exponent

# Two small gadgets far apart. With k=1, one object becomes an anti-hub for p=1
# in the first gadget, and for p>=3 in the second one. Only p=2 yields no anti-hubs.
X_GADGETS = np.array([
    [0., 0.], [2., 2.], [-3., 0.], [-4., 0.],
    [100., 0.], [101.3, 0.], [99., -1.], [98.4, -1.6],
])
X_TWO_PAIRS = np.array([[0., 0.], [0., 1.], [10., 10.], [10., 11.]])


@pytest.mark.parametrize("min_exp, max_exp, step_exp, expected", [
    (1., 4., 1., [1., 2., 3., 4.]),
    (1., 2., .3, [1., 1.3, 1.6, 1.9, 2.]),
    (2., 2., 1., [2.]),
    (.5, 1., 2., [.5, 1.]),
    (1., 1. + 1e-12, 1., [1., 1. + 1e-12]),
    (.1, .7, .1, [.1, .2, .3, .4, .5, .6, .7]),
])
def test_candidate_exponents(min_exp, max_exp, step_exp, expected):
    exponents = candidate_exponents(min_exp, max_exp, step_exp)
    assert exponents.size == len(expected)
    assert_array_almost_equal(exponents, expected)
    assert exponents[-1] == max_exp


def test_default_candidates():
    exponents = candidate_exponents(.25, 4., .25)
    assert exponents.size == 16
    assert exponents[0] == .25
    assert exponents[-1] == 4.


def test_antihub_criterion_selects_euclidean():
    finder = MinkowskiDegreeAutoFinder(min_exp=1, max_exp=4, step_exp=1, k=1, criterion="antihub")
    finder.fit(X_GADGETS)
    assert finder.best_exponent_ == 2.
    assert len(finder.trials_) == 4
    assert_array_equal(finder.tested_exponents_, [1., 2., 3., 4.])
    assert_array_almost_equal(finder.antihub_rates_, [.125, 0., .125, .125])
    assert [t.is_best for t in finder.trials_] == [True, True, False, False]
    assert isinstance(finder.trials_[0], ExponentTrial)
    expected = pairwise_distances(X_GADGETS, metric="minkowski", p=2.)
    assert_array_almost_equal(finder.best_matrix_.condensed, expected.condensed)
    assert finder.best_distance() == Distance("minkowski", p=2.)


def test_hub_criterion():
    finder = MinkowskiDegreeAutoFinder(min_exp=1, max_exp=4, step_exp=1, criterion="hub")
    finder.fit(X_GADGETS)
    assert_array_almost_equal(finder.hub_rates_, [.125, 0., .125, .125])
    assert finder.best_exponent_ == 2.


def test_ties_resolved_by_earliest_exponent():
    best, matrix, trials = find_best_exponent(X_TWO_PAIRS, min_exp=.5, max_exp=2., step_exp=.5)
    assert best == .5
    assert len(trials) == 4
    assert all(t.antihub_rate == 0. for t in trials)
    assert matrix.n == 4


def test_patience_stops_early():
    finder = MinkowskiDegreeAutoFinder(min_exp=1, max_exp=4, step_exp=1, patience=1)
    finder.fit(X_GADGETS)
    assert len(finder.trials_) == 3
    assert finder.best_exponent_ == 2.


@pytest.mark.parametrize("dataset", [None, [], np.empty((0, 2))])
def test_empty_dataset(dataset):
    with pytest.raises(InvalidInputError):
        find_best_exponent(dataset, 1., 2., .5)


@pytest.mark.parametrize("min_exp, max_exp, step_exp", [(3., 1., .5), (1., 2., 0.), (0., 2., .5)])
def test_invalid_range(min_exp, max_exp, step_exp):
    with pytest.raises(InvalidRangeError):
        find_best_exponent(X_TWO_PAIRS, min_exp, max_exp, step_exp)
    with pytest.raises(InvalidRangeError):
        MinkowskiDegreeAutoFinder(min_exp=min_exp, max_exp=max_exp, step_exp=step_exp).fit(X_TWO_PAIRS)


def test_invalid_parameters():
    with pytest.raises(ValueError):
        MinkowskiDegreeAutoFinder(criterion="skewness").fit(X_TWO_PAIRS)
    with pytest.raises(InvalidNeighborhoodSizeError):
        MinkowskiDegreeAutoFinder(k=4).fit(X_TWO_PAIRS)
    with pytest.raises(ValueError):
        MinkowskiDegreeAutoFinder(patience=0).fit(X_TWO_PAIRS)
    with pytest.raises(InvalidInputError):
        MinkowskiDegreeAutoFinder().fit(pairwise_distances(X_TWO_PAIRS))
