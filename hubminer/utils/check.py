# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
import numbers

import numpy as np
import numba

from ..exceptions import InvalidNeighborhoodSizeError, InvalidRangeError

__all__ = [
    "check_exponent_range",
    "check_kneighbors",
    "check_neighborhood_size",
]


@numba.jit(nopython=True)
def _is_sorted_per_row(arr: np.ndarray) -> bool:
    n, m = arr.shape
    for i in range(n):
        for j in range(m - 1):
            if arr[i, j] > arr[i, j + 1]:
                return False
    return True


def check_neighborhood_size(k, n_samples: int) -> int:
    """ Ensure 1 <= k < n_samples. """
    if not isinstance(k, numbers.Integral) or isinstance(k, bool):
        raise InvalidNeighborhoodSizeError(f"Neighborhood size k must be an integer, got {k!r}.")
    if k < 1 or k >= n_samples:
        raise InvalidNeighborhoodSizeError(
            f"Neighborhood size k must be in [1, {n_samples}), that is, "
            f"less than the number of objects. Got k={k}.")
    return int(k)


def check_exponent_range(min_exp: float, max_exp: float, step_exp: float):
    """ Validate a Minkowski exponent search range. """
    for name, value in [("min_exp", min_exp), ("max_exp", max_exp), ("step_exp", step_exp)]:
        if value is None or not np.isfinite(value):
            raise InvalidRangeError(f"{name} must be a finite number, got {value!r}.")
    if min_exp > max_exp:
        raise InvalidRangeError(f"Invalid exponent range: min_exp={min_exp} > max_exp={max_exp}.")
    if min_exp <= 0:
        raise InvalidRangeError(f"Minkowski exponents must be positive, got min_exp={min_exp}.")
    if step_exp <= 0:
        raise InvalidRangeError(f"Exponent step must be positive, got step_exp={step_exp}.")
    return float(min_exp), float(max_exp), float(step_exp)


def check_kneighbors(
        kneighbors: np.ndarray,
        kdistances: np.ndarray = None,
        check_self: bool = True,
        check_sorted: bool = True,
) -> np.ndarray:
    """ Ensure validity of k-nearest neighbor lists.

    Parameters
    ----------
    kneighbors : array-like of shape (n_samples, k)
        Indices of the k nearest neighbors of each object.
    kdistances : array-like of shape (n_samples, k), optional
        Corresponding distances
    check_self : bool
        Ensure that no object is its own neighbor, and that there are no duplicates.
    check_sorted : bool
        Ensure ascending distances per row (only if `kdistances` is given).

    Returns
    -------
    kneighbors : ndarray of int
    """
    kneighbors = np.asarray(kneighbors)
    if kneighbors.ndim != 2:
        raise ValueError(f"Neighbor lists must be a 2D array, got shape {kneighbors.shape}.")
    n_samples, k = kneighbors.shape
    if n_samples < 1 or k < 1:
        raise ValueError(f"Neighbor lists must not be empty. Got shape ({n_samples}, {k}).")
    if not np.issubdtype(kneighbors.dtype, np.integer):
        raise ValueError(f"Neighbor indices must be integers, got {kneighbors.dtype}.")
    if kneighbors.min() < 0 or kneighbors.max() >= n_samples:
        raise ValueError(f"Neighbor indices must be in [0, {n_samples}).")

    if check_self:
        if np.any(kneighbors == np.arange(n_samples)[:, None]):
            raise ValueError("Neighbor lists must not contain the query object itself.")
        sorted_ind = np.sort(kneighbors, axis=1)
        if np.any(sorted_ind[:, 1:] == sorted_ind[:, :-1]):
            raise ValueError("Neighbor lists must not contain duplicate indices.")

    if kdistances is not None:
        kdistances = np.asarray(kdistances, dtype=np.float64)
        if kdistances.shape != kneighbors.shape:
            raise ValueError(f"Shape of distances {kdistances.shape} must match "
                             f"shape of indices {kneighbors.shape}.")
        if check_sorted and not _is_sorted_per_row(kdistances):
            raise ValueError("Neighbor lists must be sorted, that is, store ascending distances per row.")

    return kneighbors.astype(np.intp, copy=False)
