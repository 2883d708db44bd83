#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
from typing import Union
import warnings

import numpy as np
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from ..data.dataset import check_dataset
from ..distances.matrix import DistanceMatrix
from ..exceptions import InvalidInputError
from ..neighbors.finder import NeighborSetFinder
from ..neighbors.occurrence import OccurrenceProfile
from ..utils.io import validate_verbose
from ..utils.multiprocessing import DEFAULT_N_JOBS

__all__ = [
    "Hubness",
    "VALID_HUBNESS_MEASURES",
]

#: Available hubness measures
VALID_HUBNESS_MEASURES = [
    "all",
    "all_but_gini",
    "antihub_occurrence",
    "atkinson",
    "gini",
    "groupie_ratio",
    "hub_occurrence",
    "hub_rate",
    "k_kurtosis",
    "k_skewness",
    "k_skewness_truncnorm",
    "robinhood",
]


class Hubness(BaseEstimator):
    """ Examine hubness characteristics of data.

    Parameters
    ----------
    k : int, default = 10
        Neighborhood size
    hub_size : float, default = 2
        Hubs are defined as objects with k-occurrence >= hub_size * k.
    metric : str, Distance, or callable, default = "minkowski"
        Primary distance for vector data. Ignored for precomputed distance matrices.
    p : float, default = 2
        Minkowski exponent
    return_value : str, default = "k_skewness"
        Hubness measure to return by :meth:`score`
        By default, return the skewness of the k-occurrence histogram.
        Use "all_but_gini" to return all measures except the Gini index,
        which is slow on large datasets.
        Use "all" to return a dict of all available measures,
        or check `hubminer.analysis.VALID_HUBNESS_MEASURES`
        for available measures.
    return_hubs : bool
        Whether to return the list of indices to hub objects
    return_antihubs : bool
        Whether to return the list of indices to antihub objects
    return_k_occurrence: bool
        Whether to save the list of k-occurrences. Requires O(n) memory.
    n_jobs : int, default = 8
        Number of threads for the distance matrix calculation.
    verbose: int, optional
        Level of output messages

    Attributes
    ----------
    neighbor_sets_ : NeighborSetFinder
        k-nearest neighbor sets of the fitted objects

    References
    ----------
    .. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
            Hubs in space: Popular nearest neighbors in high-dimensional data.
            Journal of Machine Learning Research, 2010, 11, 2487-2531`
    .. [2] `Feldbauer, R.; Leodolter, M.; Plant, C. & Flexer, A.
            Fast approximate hubness reduction for large high-dimensional data.
            IEEE International Conference of Big Knowledge (2018).`
    """

    def __init__(
            self,
            k: int = 10,
            hub_size: float = 2,
            metric="minkowski",
            p: float = 2,
            return_value: str = "k_skewness",
            return_hubs: bool = False,
            return_antihubs: bool = False,
            return_k_occurrence: bool = False,
            n_jobs: int = DEFAULT_N_JOBS,
            verbose: int = 0,
    ):
        self.k = k
        self.hub_size = hub_size
        self.metric = metric
        self.p = p
        self.return_value = return_value
        self.return_hubs = return_hubs
        self.return_antihubs = return_antihubs
        self.return_k_occurrence = return_k_occurrence
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None) -> Hubness:
        """ Compute k-nearest neighbor sets of the objects in `X`.

        Parameters
        ----------
        X : Dataset, array-like, DistanceMatrix, or fitted NeighborSetFinder
            Vector data, precomputed distances, or precomputed neighbor sets.
            A fitted finder determines `k` and `hub_size`.
        y : array-like, optional
            Class labels

        Returns
        -------
        self:
            Fitted instance of :mod:Hubness
        """
        return_value = self.return_value
        if return_value is None:
            return_value = "k_skewness"
        elif return_value not in VALID_HUBNESS_MEASURES:
            raise ValueError(f"Unknown return value: {return_value}. "
                             f"Allowed hubness measures: {VALID_HUBNESS_MEASURES}.")
        self.return_value = return_value

        hub_size = self.hub_size
        if hub_size is None:
            hub_size = 2.
        elif hub_size <= 0:
            raise ValueError("Hub size must be greater than zero.")
        self.hub_size = hub_size
        self.verbose = validate_verbose(self.verbose)

        if isinstance(X, NeighborSetFinder):
            check_is_fitted(X, "occurrence_")
            self.k = X.k_
            self.hub_size = X.hub_size
            self.neighbor_sets_ = X
            return self

        if isinstance(X, DistanceMatrix):
            n_samples = X.n
        else:
            X = check_dataset(X, y)
            n_samples = len(X)
            y = None
        if n_samples < 2:
            raise InvalidInputError("Cannot compute hubness as there is only one sample.")
        # Reduce k for (test) cases with very few objects
        if self.k >= n_samples:
            self.k = n_samples - 1
            warnings.warn(f"Parameter k was automatically reduced to {self.k}, "
                          f"because there are only {n_samples} samples.")

        self.neighbor_sets_ = NeighborSetFinder(
            k=self.k,
            metric=self.metric,
            p=self.p,
            hub_size=self.hub_size,
            n_jobs=self.n_jobs,
            verbose=self.verbose,
        ).fit(X, y)
        return self

    @staticmethod
    def _calc_skewness_truncnorm(k_occurrence: np.ndarray) -> float:
        """ Hubness measure; corrected for non-negativity of k-occurrence.

        Hubness as skewness of truncated normal distribution estimated from k-occurrence histogram.

        Parameters
        ----------
        k_occurrence : np.ndarray
            Reverse nearest neighbor count for each object.
        """
        clip_left = 0
        clip_right = np.iinfo(np.int64).max
        k_occurrence_mean = k_occurrence.mean()
        k_occurrence_std = k_occurrence.std(ddof=1)
        if k_occurrence_std == 0:
            return 0.
        a = (clip_left - k_occurrence_mean) / k_occurrence_std
        b = (clip_right - k_occurrence_mean) / k_occurrence_std
        return float(stats.truncnorm(a, b).moment(3))

    @staticmethod
    def _calc_gini_index(k_occurrence: np.ndarray, limiting="memory", verbose: int = 0) -> float:
        """ Hubness measure; Gini index

        Parameters
        ----------
        k_occurrence : np.ndarray
            Reverse nearest neighbor count for each object.
        limiting : "memory" or "cpu"
            If "cpu", use fast implementation with high memory usage,
            if "memory", use slightly slower, but memory-efficient implementation.
        """
        n = k_occurrence.size
        k_occurrence = k_occurrence.astype(np.int64)
        if limiting in ["memory", "space"]:
            numerator = np.int64(0)
            for i in tqdm(range(n), disable=not verbose, desc="Gini"):
                numerator += np.sum(np.abs(k_occurrence - k_occurrence[i]))
        else:
            numerator = np.sum(np.abs(k_occurrence.reshape(1, -1) - k_occurrence.reshape(-1, 1)))
        denominator = 2 * n * np.sum(k_occurrence)
        return float(numerator / denominator)

    @staticmethod
    def _calc_robinhood_index(k_occurrence: np.ndarray) -> float:
        """ Hubness measure; Robin hood/Hoover/Schutz index.

        What share of k-occurrence must be redistributed, so that all objects
        are equally often nearest neighbors to others?
        """
        numerator = .5 * float(np.sum(np.abs(k_occurrence - k_occurrence.mean())))
        denominator = float(np.sum(k_occurrence))
        return numerator / denominator

    @staticmethod
    def _calc_atkinson_index(k_occurrence: np.ndarray, eps: float = .5) -> float:
        """ Hubness measure; Atkinson index.

        Parameters
        ----------
        k_occurrence : np.ndarray
            Reverse nearest neighbor count for each object.
        eps: float, default = 0.5
            "Income" weight. Turns the index into a normative measure.
        """
        if eps == 1:
            term = np.prod(k_occurrence) ** (1. / k_occurrence.size)
        else:
            term = np.mean(k_occurrence ** (1 - eps)) ** (1 / (1 - eps))
        return float(1. - 1. / k_occurrence.mean() * term)

    @staticmethod
    def _calc_antihub_occurrence(k_occurrence: np.ndarray) -> (np.ndarray, float):
        """ Proportion of antihubs, i.e. objects that are never among the nearest neighbors of others. """
        antihubs = np.flatnonzero(k_occurrence == 0)
        antihub_occurrence = antihubs.size / k_occurrence.size
        return antihubs, antihub_occurrence

    @staticmethod
    def _calc_hub_occurrence(k: int, k_occurrence: np.ndarray, hub_size: float = 2):
        """ Proportion of nearest neighbor slots occupied by hubs. """
        hubs = np.flatnonzero(k_occurrence >= hub_size * k)
        hub_occurrence = k_occurrence[hubs].sum() / k / k_occurrence.size
        return hubs, hub_occurrence

    def score(self, X=None, y=None) -> Union[float, dict]:
        """ Estimate hubness of the fitted objects.

        Parameters
        ----------
        X : ignored
            Hubness is a property of the fitted neighbor sets.
            Fit a new instance to estimate hubness of other data.
        y : ignored

        Returns
        -------
        hubness_measure: float or dict
            Return the hubness measure as indicated by `return_value`.
            If return_value is "all", a dict of all hubness measures is returned.
        """
        check_is_fitted(self, "neighbor_sets_")
        return self.score_occurrence(self.neighbor_sets_.occurrence_)

    def score_occurrence(self, occurrence: Union[OccurrenceProfile, np.ndarray]) -> Union[float, dict]:
        """ Estimate hubness from precomputed neighbor occurrences.

        Parameters
        ----------
        occurrence : OccurrenceProfile or ndarray of shape (n_samples, )
            Neighbor occurrences. Plain k-occurrence arrays are interpreted
            with neighborhood size `k` of this estimator.

        Returns
        -------
        hubness_measure: float or dict
        """
        if isinstance(occurrence, OccurrenceProfile):
            k = occurrence.k
            k_occurrence = occurrence.total
        else:
            k = self.k
            k_occurrence = np.asarray(occurrence)
            if k_occurrence.ndim != 1 or k_occurrence.size < 2:
                raise InvalidInputError(f"Expected k-occurrence of at least two objects, "
                                        f"got array of shape {k_occurrence.shape}.")
        return_value = self.return_value or "k_skewness"
        if return_value not in VALID_HUBNESS_MEASURES:
            raise ValueError(f"Unknown return value: {return_value}. "
                             f"Allowed hubness measures: {VALID_HUBNESS_MEASURES}.")
        hub_size = self.hub_size or 2.
        n_samples = k_occurrence.size

        hubness_measures = {}
        calc_all = return_value.startswith("all")
        if calc_all or return_value == "k_skewness":
            hubness_measures["k_skewness"] = float(stats.skew(k_occurrence))

        if calc_all or return_value == "k_kurtosis":
            hubness_measures["k_kurtosis"] = float(stats.kurtosis(k_occurrence))

        if calc_all or return_value == "k_skewness_truncnorm":
            hubness_measures["k_skewness_truncnorm"] = self._calc_skewness_truncnorm(k_occurrence)

        # don't calc gini in case of "all_but_gini"
        if return_value in ["gini", "all"]:
            limiting = "space" if n_samples > 10_000 else "time"
            hubness_measures["gini"] = self._calc_gini_index(k_occurrence, limiting, verbose=self.verbose)

        if calc_all or return_value == "robinhood":
            hubness_measures["robinhood"] = self._calc_robinhood_index(k_occurrence)

        if calc_all or return_value == "atkinson":
            hubness_measures["atkinson"] = self._calc_atkinson_index(k_occurrence)

        if self.return_k_occurrence:
            hubness_measures["k_occurrence"] = k_occurrence

        return_antihub_occurrence = calc_all or return_value == "antihub_occurrence"
        if return_antihub_occurrence or self.return_antihubs:
            antihubs, antihub_occurrence = self._calc_antihub_occurrence(k_occurrence)
            if self.return_antihubs:
                hubness_measures["antihubs"] = antihubs
            if return_antihub_occurrence:
                hubness_measures["antihub_occurrence"] = antihub_occurrence

        return_hub_occurrence = calc_all or return_value in ["hub_occurrence", "hub_rate"]
        if return_hub_occurrence or self.return_hubs:
            hubs, hub_occurrence = self._calc_hub_occurrence(k=k, k_occurrence=k_occurrence, hub_size=hub_size)
            if self.return_hubs:
                hubness_measures["hubs"] = hubs
            if calc_all or return_value == "hub_occurrence":
                hubness_measures["hub_occurrence"] = hub_occurrence
            if calc_all or return_value == "hub_rate":
                hubness_measures["hub_rate"] = hubs.size / n_samples

        if calc_all or return_value == "groupie_ratio":
            hubness_measures["groupie_ratio"] = k_occurrence.max() / n_samples / k

        # If there is only one measure, return the value only
        if len(hubness_measures) == 1:
            hubness_measures = hubness_measures.get(return_value, None)
            if hubness_measures is None:
                raise ValueError(f"Internal error: could not retrieve {return_value}")
        # Otherwise, return a dict of all values
        return hubness_measures
