#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Exact k-nearest neighbor sets and neighbor occurrence statistics.

References
----------
.. [1] `Radovanović, M.; Nanopoulos, A. & Ivanović, M.
        Hubs in space: Popular nearest neighbors in high-dimensional data.
        Journal of Machine Learning Research, 2010, 11, 2487-2531`
.. [2] `Tomašev, N. & Mladenić, D.
        Hubness-aware shared neighbor distances for high-dimensional k-nearest neighbor classification.
        Knowledge and Information Systems, 2014, 39, 89-122`
"""
from __future__ import annotations
from typing import Callable, List, Union

import numpy as np
import numba
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from .occurrence import OccurrenceProfile, bad_hubness_weights, hubness_penalty_weights, label_entropy
from .occurrence import occurrence_profile
from ..data.dataset import check_dataset
from ..distances.matrix import DistanceMatrix, DistanceMatrixBuilder
from ..distances.metrics import Distance
from ..exceptions import InvalidInputError
from ..utils.check import check_neighborhood_size
from ..utils.io import validate_verbose
from ..utils.multiprocessing import DEFAULT_N_JOBS

__all__ = [
    "NeighborSetFinder",
    "compute_neighbor_sets",
]

# Rows per kernel call, so that progress can be reported
_ROWS_PER_CHUNK = 1024


@numba.jit(nopython=True)
def _knn_scan(condensed, n, k, start, stop, exclude):
    """ Find the k nearest neighbors of objects start..stop-1 from a condensed distance matrix.

    Candidates are scanned in ascending index order and kept in an insertion-sorted array.
    A candidate only displaces a kept neighbor at strictly smaller distance,
    so ties are resolved in favor of the lower index.
    Indices in `exclude[i]` (and i itself) are never selected.
    """
    n_rows = stop - start
    ind = np.empty((n_rows, k), dtype=np.int64)
    dist = np.empty((n_rows, k), dtype=np.float64)
    skip = np.zeros(n, dtype=np.bool_)
    for row in range(n_rows):
        i = start + row
        for e in range(exclude.shape[1]):
            skip[exclude[i, e]] = True
        filled = 0
        for j in range(n):
            if j == i or skip[j]:
                continue
            if j < i:
                d = condensed[n * j - j * (j + 1) // 2 + i - j - 1]
            else:
                d = condensed[n * i - i * (i + 1) // 2 + j - i - 1]
            if filled < k:
                pos = filled
                filled += 1
            elif d < dist[row, k - 1]:
                pos = k - 1
            else:
                continue
            while pos > 0 and dist[row, pos - 1] > d:
                dist[row, pos] = dist[row, pos - 1]
                ind[row, pos] = ind[row, pos - 1]
                pos -= 1
            dist[row, pos] = d
            ind[row, pos] = j
        for e in range(exclude.shape[1]):
            skip[exclude[i, e]] = False
    return ind, dist


class NeighborSetFinder(BaseEstimator):
    """ Exact k-nearest neighbor sets and neighbor occurrence statistics.

    Parameters
    ----------
    k : int, default = 5
        Neighborhood size, must be in ``[1, n_samples)``
    metric : str, Distance, or callable, default = "minkowski"
        Primary distance used to compute the distance matrix from vector data.
        Ignored, if a precomputed :class:`DistanceMatrix` is passed to :meth:`fit`.
    p : float, default = 2
        Minkowski exponent
    hub_size : float, default = 2
        Hubs are objects with k-occurrence >= hub_size * k.
    n_jobs : int, default = 8
        Number of threads for the distance matrix calculation.
        The neighbor search itself is sequential.
    verbose : int, default = 0
        If verbose > 0, show progress bar.

    Attributes
    ----------
    distance_matrix_ : DistanceMatrix
    kneighbors_ : ndarray of shape (n_samples, k)
        Indices of the k nearest neighbors of each object, nearest first.
        Ties are resolved by lower index.
    kdistances_ : ndarray of shape (n_samples, k)
        Corresponding distances
    occurrence_ : OccurrenceProfile
        Total, good, and bad neighbor occurrences
    labels_ : ndarray of shape (n_samples, ) or None
        Integer-encoded labels
    k_ : int
        Current neighborhood size (see :meth:`extend`)

    Examples
    --------
    >>> X = [[0, 0], [0, 1], [10, 10], [10, 11]]
    >>> nsf = NeighborSetFinder(k=1).fit(X)
    >>> nsf.kneighbors_.ravel()
    array([1, 0, 3, 2])
    """

    def __init__(
            self,
            k: int = 5,
            metric: Union[str, Distance, Callable] = "minkowski",
            p: float = 2,
            hub_size: float = 2.,
            n_jobs: int = DEFAULT_N_JOBS,
            verbose: int = 0,
    ):
        self.k = k
        self.metric = metric
        self.p = p
        self.hub_size = hub_size
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None) -> NeighborSetFinder:
        """ Compute k-nearest neighbor sets and occurrence statistics.

        Parameters
        ----------
        X : Dataset, array-like, sparse matrix, sequence of mappings, or DistanceMatrix
            Vector data, from which distances are calculated with `metric`,
            or a precomputed distance matrix.
        y : array-like of shape (n_samples, ), optional
            Class labels. Enable good/bad occurrence counts.

        Returns
        -------
        self
        """
        if self.hub_size is None or self.hub_size <= 0:
            raise ValueError("Hub size must be greater than zero.")
        self.verbose = validate_verbose(self.verbose)

        if isinstance(X, DistanceMatrix):
            distance_matrix = X
            labels = None
            if y is not None:
                y = np.asarray(y)
                if y.shape != (X.n, ):
                    raise InvalidInputError(f"Expected {X.n} labels, got array of shape {y.shape}.")
                _, labels = np.unique(y, return_inverse=True)
        else:
            dataset = check_dataset(X, y)
            distance_matrix = DistanceMatrixBuilder(
                metric=self.metric,
                p=self.p,
                n_jobs=self.n_jobs,
                verbose=self.verbose,
            ).build(dataset)
            labels = dataset.encoded_labels

        n_samples = distance_matrix.n
        k = check_neighborhood_size(self.k, n_samples)

        self.distance_matrix_ = distance_matrix
        self.labels_ = None if labels is None else np.asarray(labels, dtype=np.intp).ravel()
        self.n_classes_ = 0 if labels is None else int(self.labels_.max()) + 1
        self.n_samples_ = n_samples

        exclude = np.empty((n_samples, 0), dtype=np.int64)
        ind, dist = self._scan(k, exclude)
        self._set_neighbors(ind, dist)
        return self

    def _scan(self, k: int, exclude: np.ndarray):
        n = self.n_samples_
        condensed = self.distance_matrix_.condensed
        chunks = range(0, n, _ROWS_PER_CHUNK)
        ind = []
        dist = []
        for start in tqdm(chunks, desc=f"{k}-NN", disable=self.verbose < 1):
            stop = min(start + _ROWS_PER_CHUNK, n)
            ind_chunk, dist_chunk = _knn_scan(condensed, n, k, start, stop, exclude)
            ind.append(ind_chunk)
            dist.append(dist_chunk)
        return np.vstack(ind).astype(np.intp), np.vstack(dist)

    def _set_neighbors(self, ind: np.ndarray, dist: np.ndarray):
        ind.flags.writeable = False
        dist.flags.writeable = False
        self.kneighbors_ = ind
        self.kdistances_ = dist
        self.k_ = ind.shape[1]
        self.occurrence_ = occurrence_profile(ind, self.labels_, self.n_classes_ or None)

    def extend(self, k: int) -> NeighborSetFinder:
        """ Change the neighborhood size without recomputing the existing neighbor lists.

        For a larger `k`, only the additional neighbors are searched among
        the objects not yet in a list. For a smaller `k`, the lists are truncated.
        The result is identical to fitting with the new `k` from scratch.
        The distance matrix is reused unchanged.

        Parameters
        ----------
        k : int
            New neighborhood size in ``[1, n_samples)``

        Returns
        -------
        self
        """
        check_is_fitted(self, ["kneighbors_", "distance_matrix_"])
        k = check_neighborhood_size(k, self.n_samples_)
        if k <= self.k_:
            ind = self.kneighbors_[:, :k].copy()
            dist = self.kdistances_[:, :k].copy()
        else:
            exclude = np.ascontiguousarray(self.kneighbors_, dtype=np.int64)
            ind_extra, dist_extra = self._scan(k - self.k_, exclude)
            ind = np.hstack([self.kneighbors_, ind_extra])
            dist = np.hstack([self.kdistances_, dist_extra])
        self.k = k
        self._set_neighbors(ind, dist)
        return self

    def hubs(self) -> np.ndarray:
        """ Indices of objects with k-occurrence >= hub_size * k """
        check_is_fitted(self, "occurrence_")
        return np.flatnonzero(self.occurrence_.total >= self.hub_size * self.k_)

    def antihubs(self) -> np.ndarray:
        """ Indices of objects that never occur as nearest neighbor """
        check_is_fitted(self, "occurrence_")
        return np.flatnonzero(self.occurrence_.total == 0)

    def hub_rate(self) -> float:
        """ Fraction of objects that are hubs """
        return self.hubs().size / self.n_samples_

    def antihub_rate(self) -> float:
        """ Fraction of objects that are anti-hubs """
        return self.antihubs().size / self.n_samples_

    def hubness_skewness(self) -> float:
        """ Skewness of the k-occurrence distribution """
        check_is_fitted(self, "occurrence_")
        return float(stats.skew(self.occurrence_.total))

    def label_mismatch_rate(self) -> float:
        """ Fraction of neighbor occurrences between objects of different classes """
        self._check_labeled()
        return float(self.occurrence_.bad.sum() / self.occurrence_.total.sum())

    def reverse_neighbors(self) -> List[np.ndarray]:
        """ For each object, the ascending indices of objects that list it as a neighbor """
        check_is_fitted(self, "kneighbors_")
        occurring = np.repeat(np.arange(self.n_samples_), self.k_)
        neighbors = self.kneighbors_.ravel()
        order = np.argsort(neighbors, kind="stable")
        splits = np.cumsum(self.occurrence_.total)[:-1]
        return np.split(occurring[order], splits)

    def reverse_neighbor_entropies(self) -> np.ndarray:
        """ Label entropy of each object's reverse neighbor set (zero for anti-hubs) """
        self._check_labeled()
        return label_entropy(self.occurrence_.class_occurrence.T)

    def kneighbor_entropies(self) -> np.ndarray:
        """ Label entropy of each object's k-nearest neighbor set """
        self._check_labeled()
        counts = np.zeros((self.n_samples_, self.n_classes_), dtype=np.int64)
        rows = np.repeat(np.arange(self.n_samples_), self.k_)
        np.add.at(counts, (rows, self.labels_[self.kneighbors_].ravel()), 1)
        return label_entropy(counts)

    def penalize_hubness_weights(self) -> np.ndarray:
        """ Instance weights ``log(n / (N_k + 1))``, scaled to a maximum absolute value of one.

        Frequent neighbors (hubs) get low weights.
        """
        check_is_fitted(self, "occurrence_")
        return hubness_penalty_weights(self.occurrence_)

    def bad_hubness_weights(self) -> np.ndarray:
        """ Instance weights ``exp(-h_b)`` from standardized bad occurrences h_b (hw-kNN) """
        self._check_labeled()
        return bad_hubness_weights(self.occurrence_)

    def _check_labeled(self):
        check_is_fitted(self, "occurrence_")
        if not self.occurrence_.is_labeled:
            raise InvalidInputError("This statistic requires class labels. Pass them as `y` to fit().")


def compute_neighbor_sets(
        dataset,
        k: int,
        distance_fn: Union[str, Distance, Callable] = "minkowski",
        p: float = 2,
        n_jobs: int = DEFAULT_N_JOBS,
) -> (np.ndarray, OccurrenceProfile):
    """ Compute k-nearest neighbor lists and neighbor occurrence statistics.

    Parameters
    ----------
    dataset : Dataset, array-like, or DistanceMatrix
        Labels of a :class:`Dataset` enable good/bad occurrence counts.
    k : int
        Neighborhood size in ``[1, n_samples)``
    distance_fn : str, Distance, or callable
        Primary distance
    p : float
        Minkowski exponent, if `distance_fn` is "minkowski"
    n_jobs : int
        Threads for the distance matrix calculation

    Returns
    -------
    kneighbors, occurrence : ndarray of shape (n_samples, k), OccurrenceProfile
    """
    nsf = NeighborSetFinder(k=k, metric=distance_fn, p=p, n_jobs=n_jobs)
    nsf.fit(dataset)
    return nsf.kneighbors_, nsf.occurrence_
