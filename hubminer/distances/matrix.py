# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
import logging
from typing import Callable, Union

import numpy as np
from scipy.spatial.distance import squareform
from sklearn.utils import gen_even_slices
from joblib import Parallel, delayed

from .metrics import Distance, get_distance
from ..data.dataset import Dataset, check_dataset
from ..exceptions import DistanceComputationError, InvalidInputError
from ..utils.multiprocessing import DEFAULT_N_JOBS, validate_n_jobs

__all__ = [
    "DistanceMatrix",
    "DistanceMatrixBuilder",
    "pairwise_distances",
]


class DistanceMatrix:
    """ Symmetric, zero-diagonal distance matrix in upper triangular (condensed) storage.

    Distances d(i, j) for i < j are stored in a flat array in row-major order,
    identical to the condensed format of :func:`scipy.spatial.distance.squareform`.
    The diagonal is implicitly zero and not stored.

    Parameters
    ----------
    condensed : array-like of shape (n * (n - 1) / 2, )
        Pairwise distances
    n : int, optional
        Number of objects. Inferred from the length of `condensed`, if None.
    copy : bool, default = True
        Copy `condensed`. Otherwise, the given buffer is frozen and used directly.

    Notes
    -----
    The underlying buffer is read-only, so that a matrix can be shared
    between several neighbor set computations without copying.
    """

    def __init__(self, condensed, n: int = None, copy: bool = True):
        if copy:
            condensed = np.array(condensed, dtype=np.float64).ravel()
        else:
            condensed = np.asarray(condensed, dtype=np.float64).ravel()
        if n is None:
            n = int(np.ceil(np.sqrt(2 * condensed.size)))
        if n < 2:
            raise InvalidInputError(f"A distance matrix requires at least two objects, got n={n}.")
        if condensed.size != n * (n - 1) // 2:
            raise InvalidInputError(f"Expected {n * (n - 1) // 2} pairwise distances "
                                    f"for n={n} objects, got {condensed.size}.")
        condensed.flags.writeable = False
        self._condensed = condensed
        self.n = n

    @classmethod
    def from_square(cls, D, check_symmetric: bool = True) -> DistanceMatrix:
        """ Create from a square (n, n) distance matrix. """
        D = np.asarray(D, dtype=np.float64)
        if D.ndim != 2 or D.shape[0] != D.shape[1]:
            raise InvalidInputError(f"Expected a square matrix, got shape {D.shape}.")
        if check_symmetric and not np.allclose(D, D.T):
            raise InvalidInputError("Distance matrix must be symmetric.")
        return cls(D[np.triu_indices(D.shape[0], k=1)], n=D.shape[0])

    @staticmethod
    def condensed_index(i, j, n: int):
        """ Position of pair (i, j), i != j, in condensed storage (vectorized). """
        i, j = np.minimum(i, j), np.maximum(i, j)
        return n * i - i * (i + 1) // 2 + j - i - 1

    @property
    def condensed(self) -> np.ndarray:
        return self._condensed

    @property
    def shape(self):
        return self.n, self.n

    def __len__(self):
        return self.n

    def __repr__(self):
        return f"DistanceMatrix(n={self.n})"

    def __getitem__(self, item) -> float:
        i, j = item
        if not (0 <= i < self.n and 0 <= j < self.n):
            raise IndexError(f"Index ({i}, {j}) out of bounds for {self.n} objects.")
        if i == j:
            return 0.
        return float(self._condensed[self.condensed_index(i, j, self.n)])

    def row(self, i: int) -> np.ndarray:
        """ Distances from object i to all objects (including zero self distance). """
        if not 0 <= i < self.n:
            raise IndexError(f"Index {i} out of bounds for {self.n} objects.")
        others = np.arange(self.n)
        row = np.zeros(self.n, dtype=np.float64)
        mask = others != i
        row[mask] = self._condensed[self.condensed_index(i, others[mask], self.n)]
        return row

    def to_square(self) -> np.ndarray:
        """ Return a full (n, n) copy of the matrix. """
        return squareform(self._condensed, force="tomatrix", checks=False)


def _row_offset(i: int, n: int) -> int:
    """ Position of the first pair (i, i+1) of row i in condensed storage. """
    return n * i - i * (i + 1) // 2


class DistanceMatrixBuilder:
    """ Compute all pairwise distances of a data set with parallel workers.

    The row range ``[0, n)`` is split into contiguous slices, one per worker.
    Each worker computes distances of its rows i to all subsequent objects j > i,
    and writes them to its own region of a shared, preallocated buffer.
    Since regions are disjoint, no locking is required.

    Parameters
    ----------
    metric : str, Distance or callable, default = "minkowski"
        Distance function. Strings are resolved by :func:`get_distance`.
        Custom callables ``f(x, y) -> float`` must be symmetric and defined for all pairs.
    p : float, default = 2
        Minkowski exponent, if `metric` is "minkowski"
    n_jobs : int, default = 8
        Number of worker threads (clamped to the number of objects).
        ``-1`` uses all CPU cores.
    verbose : int, default = 0
    """

    def __init__(self, metric: Union[str, Distance, Callable] = "minkowski", p: float = 2,
                 n_jobs: int = DEFAULT_N_JOBS, verbose: int = 0):
        self.metric = metric
        self.p = p
        self.n_jobs = n_jobs
        self.verbose = verbose

    def build(self, dataset) -> DistanceMatrix:
        """ Calculate the distance matrix of `dataset`.

        Parameters
        ----------
        dataset : Dataset or array-like
            At least two objects

        Returns
        -------
        distance_matrix : DistanceMatrix

        Raises
        ------
        InvalidInputError
            If the data set is None, empty, or contains a single object.
        DistanceComputationError
            If the distance function fails for any pair. No partial result is returned.
        """
        if dataset is None:
            raise InvalidInputError("Data set must not be None.")
        dataset = check_dataset(dataset)
        n = len(dataset)
        if n < 2:
            raise InvalidInputError(f"At least two objects are required for distance calculations, got {n}.")
        distance = get_distance(self.metric, p=self.p)
        n_jobs = validate_n_jobs(self.n_jobs, n_samples=n)

        buffer = np.empty(n * (n - 1) // 2, dtype=np.float64)
        try:
            Parallel(n_jobs=n_jobs, prefer="threads")(
                delayed(self._fill_rows)(dataset, distance, buffer, rows)
                for rows in gen_even_slices(n, n_jobs)
            )
        except Exception as e:
            raise DistanceComputationError(f"Distance calculation failed ({distance!r}): {e}") from e
        if self.verbose > 0:
            logging.info(f"Calculated {buffer.size} distances ({distance}) with {n_jobs} workers.")
        return DistanceMatrix(buffer, n=n, copy=False)

    @staticmethod
    def _fill_rows(dataset: Dataset, distance, buffer: np.ndarray, rows: slice):
        n = len(dataset)
        X = dataset.X
        vectorized = isinstance(distance, Distance)
        for i in range(rows.start, rows.stop):
            if i == n - 1:
                break
            start = _row_offset(i, n)
            stop = start + n - i - 1
            if vectorized:
                x = X[i:i + 1] if dataset.is_sparse else X[i]
                buffer[start:stop] = distance.one_to_many(x, X[i + 1:])
            else:
                x = dataset.vector_at(i)
                for offset, j in enumerate(range(i + 1, n)):
                    buffer[start + offset] = distance(x, dataset.vector_at(j))


def pairwise_distances(X, metric: Union[str, Distance, Callable] = "minkowski", p: float = 2,
                       n_jobs: int = DEFAULT_N_JOBS) -> DistanceMatrix:
    """ Convenience function for :meth:`DistanceMatrixBuilder.build`. """
    return DistanceMatrixBuilder(metric=metric, p=p, n_jobs=n_jobs).build(X)
