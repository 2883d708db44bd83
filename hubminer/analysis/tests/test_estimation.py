#!/usr/bin/env python3
# SPDX-License-Identifier: BSD-3-Clause

import pytest

import numpy as np
from numpy.testing import assert_array_equal
from sklearn.datasets import make_classification

from hubminer.analysis import Hubness, VALID_HUBNESS_MEASURES
from hubminer.data import make_gaussian_blobs
from hubminer.distances import DistanceMatrix
from hubminer.neighbors import NeighborSetFinder

DIST = DistanceMatrix([.2, .1, .8, .4, .3, .5, .7, 1., .6, .9])
# k=2 occurrences of DIST are [4, 3, 3, 0, 0]
K_OCCURRENCE = np.array([4, 3, 3, 0, 0])


@pytest.mark.parametrize("verbose", [-1, 0, 1, 2, 3, None])
def test_hubness(verbose):
    """Test hubness against ground truth calc on spreadsheet"""
    HUBNESS_TRUE = -0.2561204163  # Hubness truth: skewness calculated with bias
    hub = Hubness(k=2, verbose=verbose)
    hub.fit(DIST)
    Sk2 = hub.score()
    np.testing.assert_almost_equal(Sk2, HUBNESS_TRUE, decimal=10)


@pytest.mark.parametrize("measure, expected", [
    ("robinhood", .4),
    ("gini", .44),
    ("hub_occurrence", .4),
    ("hub_rate", .2),
    ("antihub_occurrence", .4),
    ("groupie_ratio", .4),
])
def test_hubness_measures(measure, expected):
    hub = Hubness(k=2, return_value=measure).fit(DIST)
    assert hub.score() == pytest.approx(expected)
    assert hub.score_occurrence(K_OCCURRENCE) == pytest.approx(expected)


def test_gini_implementations_agree():
    rng = np.random.RandomState(3)
    k_occurrence = rng.poisson(5, size=200)
    time = Hubness._calc_gini_index(k_occurrence, limiting="time")
    space = Hubness._calc_gini_index(k_occurrence, limiting="space")
    assert time == pytest.approx(space)


def test_uniform_occurrence_has_no_hubness():
    measures = Hubness(k=3, return_value="all").score_occurrence(np.full(10, 3))
    assert measures["robinhood"] == 0.
    assert measures["gini"] == 0.
    assert measures["atkinson"] == pytest.approx(0.)
    assert measures["k_skewness_truncnorm"] == 0.
    assert measures["hub_occurrence"] == 0.
    assert measures["antihub_occurrence"] == 0.


@pytest.mark.parametrize("return_value", ["all", "all_but_gini"])
def test_return_all(return_value):
    hub = Hubness(k=2, return_value=return_value).fit(DIST)
    measures = hub.score()
    assert isinstance(measures, dict)
    expected = set(VALID_HUBNESS_MEASURES) - {"all", "all_but_gini"}
    if return_value == "all_but_gini":
        expected -= {"gini"}
    assert set(measures) == expected


def test_unknown_return_value():
    hub = Hubness(return_value="k_neighbors")
    with pytest.raises(ValueError):
        hub.fit(DIST)


@pytest.mark.parametrize("return_value", ["all", "k_skewness"])
@pytest.mark.parametrize("return_k_occurrence", [True, False])
def test_return_k_occurrence(return_value, return_k_occurrence):
    hub = Hubness(k=2, return_value=return_value, return_k_occurrence=return_k_occurrence)
    result = hub.fit(DIST).score()
    if return_k_occurrence:
        assert_array_equal(result["k_occurrence"], K_OCCURRENCE)
    else:
        ExpectedError = KeyError if return_value == "all" else TypeError
        with pytest.raises(ExpectedError):
            _ = result["k_occurrence"]


@pytest.mark.parametrize("return_value", ["all", "k_skewness"])
def test_return_hubs_and_antihubs(return_value):
    hub = Hubness(k=2, return_value=return_value, return_hubs=True, return_antihubs=True)
    result = hub.fit(DIST).score()
    assert_array_equal(result["hubs"], [0])
    assert_array_equal(result["antihubs"], [3, 4])


def test_hubness_from_neighbor_set_finder():
    blobs = make_gaussian_blobs(n_samples=50, n_features=100, random_state=0)
    nsf = NeighborSetFinder(k=5).fit(blobs)
    hub = Hubness(k=10).fit(nsf)
    assert hub.k == 5
    assert hub.score() == pytest.approx(nsf.hubness_skewness())
    assert hub.score_occurrence(nsf.occurrence_) == pytest.approx(nsf.hubness_skewness())


def test_hubness_from_vectors_reduces_k():
    X = np.random.RandomState(1).rand(6, 4)
    with pytest.warns(UserWarning):
        hub = Hubness(k=10).fit(X)
    assert hub.k == 5
    assert hub.neighbor_sets_.k_ == 5


def test_hubness_of_high_dimensional_data():
    blobs = make_gaussian_blobs(n_samples=200, n_features=200, n_classes=1, random_state=123)
    low = make_gaussian_blobs(n_samples=200, n_features=2, n_classes=1, random_state=123)
    high_dim = Hubness(k=10, n_jobs=2).fit(blobs).score()
    low_dim = Hubness(k=10, n_jobs=2).fit(low).score()
    assert high_dim > low_dim


def test_k_occurrence_of_classification_data():
    X, y = make_classification(random_state=123)
    hub = Hubness(k=5, return_value="all_but_gini", return_k_occurrence=True)
    measures = hub.fit(X, y).score()
    k_occ = measures["k_occurrence"]
    assert k_occ.shape == (X.shape[0], )
    assert k_occ.sum() == X.shape[0] * 5
    assert 0. <= measures["robinhood"] <= 1.
    assert measures["antihub_occurrence"] == pytest.approx(np.mean(k_occ == 0))


@pytest.mark.parametrize("hub_size", [1., 1.5, 3.])
def test_hub_size_from_neighbor_set_finder(hub_size):
    nsf = NeighborSetFinder(k=2, hub_size=hub_size).fit(DIST)
    hub = Hubness(k=5, hub_size=2., return_value="hub_rate", return_hubs=True).fit(nsf)
    assert hub.hub_size == hub_size
    result = hub.score()
    assert result["hub_rate"] == pytest.approx(nsf.hub_rate())
    assert_array_equal(result["hubs"], nsf.hubs())
