# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
""" Primary distance functions.

Metrics are identified by a :class:`MetricKind`, and dispatched to dense,
sparse (scipy CSR) and mapped (``{index: weight}``) implementations through
lookup tables. A :class:`Distance` bundles a metric kind with its parameters,
and exposes ``dist(x, y)`` and the vectorized ``one_to_many(x, Y)``.
"""
from __future__ import annotations
from enum import Enum
from typing import Callable, Union

import numpy as np
from scipy.sparse import csr_matrix, issparse

from ..exceptions import InvalidRangeError

__all__ = [
    "Distance",
    "MetricKind",
    "VALID_METRICS",
    "get_distance",
]


class MetricKind(str, Enum):
    """ Available primary metrics """
    MINKOWSKI = "minkowski"
    MANHATTAN = "manhattan"
    EUCLIDEAN = "euclidean"
    CHEBYSHEV = "chebyshev"
    COSINE = "cosine"


#: Names of available primary metrics
VALID_METRICS = [m.value for m in MetricKind]


# Dense implementations: x of shape (n_features, ), Y of shape (n_objects, n_features)
def _minkowski_dense(x: np.ndarray, Y: np.ndarray, p: float) -> np.ndarray:
    diff = np.abs(Y - x)
    if p == 1:
        return diff.sum(axis=1)
    elif p == 2:
        return np.sqrt(np.einsum("ij,ij->i", diff, diff))
    return np.power(np.power(diff, p).sum(axis=1), 1. / p)


def _chebyshev_dense(x: np.ndarray, Y: np.ndarray, p: float = None) -> np.ndarray:
    if Y.shape[1] == 0:
        return np.zeros(Y.shape[0])
    return np.abs(Y - x).max(axis=1)


def _cosine_from_products(dot: np.ndarray, norm_x: float, norm_Y: np.ndarray) -> np.ndarray:
    denominator = norm_x * norm_Y
    with np.errstate(divide="ignore", invalid="ignore"):
        dist = 1. - dot / denominator
    # Two zero vectors are identical, a zero vector and a non-zero vector are maximally dissimilar
    zero = denominator == 0
    dist[zero] = np.where((norm_Y[zero] == 0) & (norm_x == 0), 0., 1.)
    return np.clip(dist, 0., 2.)


def _cosine_dense(x: np.ndarray, Y: np.ndarray, p: float = None) -> np.ndarray:
    return _cosine_from_products(Y @ x, np.linalg.norm(x), np.linalg.norm(Y, axis=1))


# Sparse implementations: x is a 1-row CSR matrix, Y a CSR matrix.
# Subtracting sparse rows only touches the union of stored indices, absent entries count as zero.
def _sparse_abs_diff(x: csr_matrix, Y: csr_matrix) -> csr_matrix:
    repeated = x[np.zeros(Y.shape[0], dtype=np.intp)]
    return abs(Y - repeated)


def _minkowski_sparse(x: csr_matrix, Y: csr_matrix, p: float) -> np.ndarray:
    diff = _sparse_abs_diff(x, Y)
    total = np.asarray(diff.power(p).sum(axis=1)).ravel()
    if p == 1:
        return total
    return np.power(total, 1. / p)


def _chebyshev_sparse(x: csr_matrix, Y: csr_matrix, p: float = None) -> np.ndarray:
    diff = _sparse_abs_diff(x, Y)
    return diff.max(axis=1).toarray().ravel()


def _cosine_sparse(x: csr_matrix, Y: csr_matrix, p: float = None) -> np.ndarray:
    dot = np.asarray((Y @ x.T).todense()).ravel()
    norm_x = np.sqrt(x.multiply(x).sum())
    norm_Y = np.sqrt(np.asarray(Y.multiply(Y).sum(axis=1)).ravel())
    return _cosine_from_products(dot, norm_x, norm_Y)


# Mapped implementations: x and y are {feature_index: weight} dictionaries
def _minkowski_mapped(x: dict, y: dict, p: float) -> float:
    total = 0.
    for index in x.keys() | y.keys():
        total += abs(x.get(index, 0.) - y.get(index, 0.)) ** p
    return total ** (1. / p)


def _chebyshev_mapped(x: dict, y: dict, p: float = None) -> float:
    return max((abs(x.get(index, 0.) - y.get(index, 0.)) for index in x.keys() | y.keys()), default=0.)


def _cosine_mapped(x: dict, y: dict, p: float = None) -> float:
    dot = sum(weight * y[index] for index, weight in x.items() if index in y)
    norm_x = np.sqrt(sum(w * w for w in x.values()))
    norm_y = np.sqrt(sum(w * w for w in y.values()))
    return float(_cosine_from_products(np.array([dot]), norm_x, np.array([norm_y]))[0])


_DENSE = {
    MetricKind.MINKOWSKI: _minkowski_dense,
    MetricKind.MANHATTAN: _minkowski_dense,
    MetricKind.EUCLIDEAN: _minkowski_dense,
    MetricKind.CHEBYSHEV: _chebyshev_dense,
    MetricKind.COSINE: _cosine_dense,
}
_SPARSE = {
    MetricKind.MINKOWSKI: _minkowski_sparse,
    MetricKind.MANHATTAN: _minkowski_sparse,
    MetricKind.EUCLIDEAN: _minkowski_sparse,
    MetricKind.CHEBYSHEV: _chebyshev_sparse,
    MetricKind.COSINE: _cosine_sparse,
}
_MAPPED = {
    MetricKind.MINKOWSKI: _minkowski_mapped,
    MetricKind.MANHATTAN: _minkowski_mapped,
    MetricKind.EUCLIDEAN: _minkowski_mapped,
    MetricKind.CHEBYSHEV: _chebyshev_mapped,
    MetricKind.COSINE: _cosine_mapped,
}
_FIXED_EXPONENT = {
    MetricKind.MANHATTAN: 1.,
    MetricKind.EUCLIDEAN: 2.,
}


class Distance:
    """ Primary distance of a given metric kind.

    Parameters
    ----------
    metric : str or MetricKind, default = "minkowski"
        One of `VALID_METRICS`
    p : float, default = 2
        Minkowski exponent (ignored for all but "minkowski").
        Values below 1 are allowed, although they do not yield a metric.

    Examples
    --------
    >>> Distance("minkowski", p=1)([0, 0], [3, 4])
    7.0
    """

    def __init__(self, metric: Union[str, MetricKind] = "minkowski", p: float = 2):
        try:
            self.kind = MetricKind(metric)
        except ValueError:
            raise ValueError(f"Unknown metric '{metric}'. Must be one of {VALID_METRICS}.")
        p = _FIXED_EXPONENT.get(self.kind, p)
        if self.kind is MetricKind.MINKOWSKI and (p is None or not np.isfinite(p) or p <= 0):
            raise InvalidRangeError(f"Minkowski exponent p must be a positive number, got {p}.")
        self.p = float(p) if p is not None else None

    def __repr__(self):
        if self.kind in _FIXED_EXPONENT or self.kind is MetricKind.MINKOWSKI:
            return f"Distance(metric='{self.kind.value}', p={self.p})"
        return f"Distance(metric='{self.kind.value}')"

    def __eq__(self, other):
        return isinstance(other, Distance) and self.kind is other.kind and self.p == other.p

    def __hash__(self):
        return hash((self.kind, self.p))

    def dist(self, x, y) -> float:
        """ Distance between two feature vectors (dense, sparse, or mapped). """
        if isinstance(x, dict) and isinstance(y, dict):
            return float(_MAPPED[self.kind](x, y, self.p))
        if issparse(x) or issparse(y):
            x = csr_matrix(x)
            y = csr_matrix(y)
            return float(_SPARSE[self.kind](x, y, self.p)[0])
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y, dtype=np.float64).reshape(1, -1)
        return float(_DENSE[self.kind](x, y, self.p)[0])

    __call__ = dist

    def one_to_many(self, x, Y) -> np.ndarray:
        """ Distances between one vector `x` and each row of `Y`.

        Parameters
        ----------
        x : ndarray of shape (n_features, ) or CSR matrix of shape (1, n_features)
        Y : ndarray or CSR matrix of shape (n_objects, n_features)

        Returns
        -------
        dist : ndarray of shape (n_objects, )
        """
        if issparse(Y):
            return _SPARSE[self.kind](csr_matrix(x), Y, self.p)
        return _DENSE[self.kind](np.asarray(x, dtype=np.float64).ravel(), Y, self.p)


def get_distance(metric: Union[str, MetricKind, Distance, Callable] = "minkowski",
                 p: float = 2) -> Union[Distance, Callable]:
    """ Return a distance object for `metric`.

    Any callable ``f(x, y) -> float`` is accepted as a custom distance function,
    and returned unchanged.
    """
    if isinstance(metric, Distance):
        return metric
    if isinstance(metric, (str, MetricKind)):
        return Distance(metric, p=p)
    if callable(metric):
        return metric
    raise ValueError(f"Invalid metric: {metric!r}. Must be one of {VALID_METRICS}, "
                     f"a Distance, or a callable.")
