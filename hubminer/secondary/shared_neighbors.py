# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
""" Secondary distances from shared nearest neighbors.

Two objects are similar, if their k-nearest neighbor sets overlap.
With `simcos`, every shared neighbor contributes equally.
With `simhub`, each shared neighbor z contributes a weight that decreases
with its hubness, so that overlap on generic hubs counts less than overlap
on rarely occurring neighbors [1]_.

References
----------
.. [1] `Tomašev, N. & Mladenić, D.
        Hubness-aware shared neighbor distances for high-dimensional k-nearest neighbor classification.
        Knowledge and Information Systems, 2014, 39, 89-122`
"""
from __future__ import annotations
from typing import Callable, Union
import warnings

import numpy as np
from scipy.sparse import csr_matrix
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted

from ..data.dataset import check_dataset
from ..distances.matrix import DistanceMatrix
from ..distances.metrics import Distance
from ..exceptions import InvalidInputError
from ..neighbors.finder import NeighborSetFinder
from ..neighbors.occurrence import OccurrenceProfile, bad_hubness_weights, hubness_penalty_weights, label_entropy
from ..utils.check import check_kneighbors
from ..utils.multiprocessing import DEFAULT_N_JOBS

__all__ = [
    "SharedNeighborDistance",
    "VALID_VARIANTS",
    "VALID_WEIGHTINGS",
    "compute_secondary_distances",
    "hubness_weights",
    "shared_neighbor_distance",
]

#: Shared-neighbor distance variants
VALID_VARIANTS = [
    "simcos",
    "simhub",
]

#: Named weighting schemes for shared neighbors in `simhub`
VALID_WEIGHTINGS = [
    "inverse",
    "log",
    "log_entropy",
    "bad_hubness",
]


def _inverse_weights(occurrence: OccurrenceProfile) -> np.ndarray:
    total = occurrence.total.astype(np.float64)
    return np.divide(1., total, out=np.zeros_like(total), where=total > 0)


def _log_entropy_weights(occurrence: OccurrenceProfile) -> np.ndarray:
    if occurrence.class_occurrence is None:
        raise InvalidInputError("Weighting 'log_entropy' requires class labels.")
    weights = hubness_penalty_weights(occurrence)
    n_classes = occurrence.class_occurrence.shape[0]
    if n_classes > 1:
        # Objects occurring in neighbor sets of many classes are less informative
        entropy = label_entropy(occurrence.class_occurrence.T)
        weights = weights * (1. - entropy / np.log2(n_classes))
    return weights


_WEIGHTINGS = {
    "inverse": _inverse_weights,
    "log": hubness_penalty_weights,
    "log_entropy": _log_entropy_weights,
    "bad_hubness": bad_hubness_weights,
}


def hubness_weights(occurrence: OccurrenceProfile, weighting: Union[str, Callable] = "inverse") -> np.ndarray:
    """ Weights of objects as shared neighbors in `simhub`.

    Parameters
    ----------
    occurrence : OccurrenceProfile
        Neighbor occurrences of the primary k-NN sets
    weighting : str or callable, default = "inverse"
        Monotonically decreasing transform of hubness:

        - "inverse": ``1 / N_k(z)``
        - "log": ``log(n / (N_k(z) + 1))``, scaled to maximum one
        - "log_entropy": "log" weights times ``1 - H(z) / log2(n_classes)``,
          where H(z) is the label entropy of the reverse neighbors of z (requires labels)
        - "bad_hubness": ``exp(-h_b(z))`` from standardized bad occurrences (hw-kNN, requires labels)
        - callable: ``f(occurrence) -> ndarray of shape (n_samples, )``

    Returns
    -------
    weights : ndarray of shape (n_samples, )
    """
    if occurrence is None:
        raise InvalidInputError("Hubness-aware shared neighbor distances require an occurrence profile.")
    if callable(weighting):
        weights = np.asarray(weighting(occurrence), dtype=np.float64)
    elif weighting in _WEIGHTINGS:
        weights = _WEIGHTINGS[weighting](occurrence)
    else:
        raise ValueError(f"Unknown weighting '{weighting}'. Must be one of {VALID_WEIGHTINGS}, or a callable.")
    if weights.shape != occurrence.total.shape:
        raise ValueError(f"Expected {occurrence.total.size} weights, got array of shape {weights.shape}.")
    return weights


def _check_variant(variant: str):
    if variant not in VALID_VARIANTS:
        raise ValueError(f"Unknown shared neighbor variant '{variant}'. Must be one of {VALID_VARIANTS}.")


def shared_neighbor_distance(
        neighbors_x,
        neighbors_y,
        occurrence: OccurrenceProfile = None,
        variant: str = "simcos",
        weighting: Union[str, Callable] = "inverse",
) -> float:
    """ Secondary distance of two objects from their k-nearest neighbor lists.

    Parameters
    ----------
    neighbors_x, neighbors_y : array-like of shape (k, )
        Primary k-NN lists of the two objects
    occurrence : OccurrenceProfile, optional
        Primary neighbor occurrences (required for "simhub")
    variant : "simcos" or "simhub", default = "simcos"
    weighting : str or callable, default = "inverse"
        See :func:`hubness_weights`

    Returns
    -------
    distance : float
        ``1 - |N(x) ∩ N(y)| / k`` for simcos,
        ``1 - Σ_{z in N(x) ∩ N(y)} w(z) / k`` for simhub.
    """
    _check_variant(variant)
    neighbors_x = np.asarray(neighbors_x)
    neighbors_y = np.asarray(neighbors_y)
    if neighbors_x.shape != neighbors_y.shape or neighbors_x.ndim != 1:
        raise InvalidInputError(f"Neighbor lists must be of equal length, "
                                f"got shapes {neighbors_x.shape} and {neighbors_y.shape}.")
    k = neighbors_x.size
    shared = np.intersect1d(neighbors_x, neighbors_y, assume_unique=True)
    if variant == "simcos":
        return 1. - shared.size / k
    weights = hubness_weights(occurrence, weighting)
    return 1. - weights[shared].sum() / k


def compute_secondary_distances(
        kneighbors: np.ndarray,
        occurrence: OccurrenceProfile = None,
        variant: str = "simcos",
        weighting: Union[str, Callable] = "inverse",
) -> DistanceMatrix:
    """ Shared-neighbor distances between all pairs of objects.

    The result equals applying :func:`shared_neighbor_distance` to every pair,
    but is computed as a sparse product of neighbor set incidence matrices.

    Parameters
    ----------
    kneighbors : ndarray of shape (n_samples, k)
        Primary k-NN lists
    occurrence : OccurrenceProfile, optional
        Primary neighbor occurrences (required for "simhub")
    variant : "simcos" or "simhub", default = "simcos"
    weighting : str or callable, default = "inverse"
        See :func:`hubness_weights`

    Returns
    -------
    secondary : DistanceMatrix
        A new matrix. Primary data are left unchanged.
    """
    _check_variant(variant)
    kneighbors = check_kneighbors(kneighbors)
    n_samples, k = kneighbors.shape
    if n_samples < 2:
        raise InvalidInputError("Secondary distances require at least two objects.")

    rows = np.repeat(np.arange(n_samples), k)
    cols = kneighbors.ravel()
    incidence = csr_matrix((np.ones(rows.size), (rows, cols)), shape=(n_samples, n_samples))
    if variant == "simcos":
        weighted = incidence
    else:
        if occurrence is not None and occurrence.n_samples != n_samples:
            raise InvalidInputError(f"Occurrence profile of {occurrence.n_samples} objects "
                                    f"does not match {n_samples} neighbor lists.")
        weights = hubness_weights(occurrence, weighting)
        weighted = csr_matrix((weights[cols], (rows, cols)), shape=(n_samples, n_samples))

    similarity = (incidence @ weighted.T).toarray()
    i, j = np.triu_indices(n_samples, k=1)
    return DistanceMatrix(1. - similarity[i, j] / k, n=n_samples, copy=False)


class SharedNeighborDistance(BaseEstimator):
    """ Primary k-NN sets, followed by shared-neighbor secondary distances.

    Parameters
    ----------
    k : int, default = 50
        Neighborhood size of the primary k-NN sets
    variant : "simcos" or "simhub", default = "simhub"
    weighting : str or callable, default = "inverse"
        Shared neighbor weights in "simhub", see :func:`hubness_weights`
    metric, p : str, float
        Primary distance
    n_jobs : int, default = 8
        Threads for the primary distance matrix
    verbose : int, default = 0

    Attributes
    ----------
    primary_ : NeighborSetFinder
        Fitted primary neighbor sets
    secondary_distances_ : DistanceMatrix
    """

    def __init__(
            self,
            k: int = 50,
            variant: str = "simhub",
            weighting: Union[str, Callable] = "inverse",
            metric: Union[str, Distance, Callable] = "minkowski",
            p: float = 2,
            n_jobs: int = DEFAULT_N_JOBS,
            verbose: int = 0,
    ):
        self.k = k
        self.variant = variant
        self.weighting = weighting
        self.metric = metric
        self.p = p
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None) -> SharedNeighborDistance:
        """ Compute primary k-NN sets of `X` and secondary distances between all objects.

        Parameters
        ----------
        X : Dataset, array-like, or DistanceMatrix
        y : array-like, optional
            Class labels, required for weighting "log_entropy"
        """
        _check_variant(self.variant)
        primary = NeighborSetFinder(
            k=self.k,
            metric=self.metric,
            p=self.p,
            n_jobs=self.n_jobs,
            verbose=self.verbose,
        )
        if isinstance(X, DistanceMatrix):
            n_samples = X.n
        else:
            X = check_dataset(X, y)
            n_samples = len(X)
            y = None
        if n_samples > 1 and self.k >= n_samples:
            primary.set_params(k=n_samples - 1)
            warnings.warn(f"Parameter k was automatically reduced to {n_samples - 1}, "
                          f"because there are only {n_samples} samples.")
        primary.fit(X, y)

        self.primary_ = primary
        self.secondary_distances_ = compute_secondary_distances(
            primary.kneighbors_,
            primary.occurrence_,
            variant=self.variant,
            weighting=self.weighting,
        )
        return self

    def secondary_neighbors(self, k: int = 5) -> NeighborSetFinder:
        """ k-NN sets and occurrence statistics in the secondary distance space. """
        check_is_fitted(self, "secondary_distances_")
        labels = self.primary_.labels_
        return NeighborSetFinder(k=k, verbose=self.verbose).fit(self.secondary_distances_, labels)
