# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations

import numpy as np
from scipy import stats
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from ..distances.matrix import DistanceMatrix
from ..exceptions import InvalidInputError
from ..utils.io import validate_verbose

__all__ = [
    "MutualProximity",
    "mutual_proximity",
]


def _normal_sf(dist: np.ndarray, mu: np.ndarray, sd: np.ndarray) -> np.ndarray:
    """ Survival function of independent Gaussians, a step function for zero deviation """
    degenerate = sd <= 0
    sf = stats.norm.sf(dist, mu, np.where(degenerate, 1., sd))
    return np.where(degenerate, (dist < mu).astype(np.float64), sf)


class MutualProximity(BaseEstimator):
    """ Secondary distances with Mutual Proximity [1]_ on a full distance matrix.

    MP(x, y) is the probability that y is closer to x than a random object,
    and x is closer to y than a random object. Distances are returned as ``1 - MP``.

    Parameters
    ----------
    method: "normal" or "empiric", default = "normal"
        Model distance distribution with "method".

        - "normal" (="gaussi") models distance distributions with independent Gaussians (fast)
        - "empiric" (="exact") models distances with the empiric distributions (slow, cubic time)

    verbose: int, default = 0
        If verbose > 0, show progress bar.

    References
    ----------
    .. [1] Schnitzer, D., Flexer, A., Schedl, M., & Widmer, G. (2012).
           Local and global scaling reduce hubs in space. The Journal of Machine
           Learning Research, 13(1), 2871–2902.
    """

    def __init__(self, method: str = "normal", verbose: int = 0):
        self.method = method
        self.verbose = verbose

    def fit(self, X: DistanceMatrix, y=None) -> MutualProximity:
        """ Extract mutual proximity parameters.

        Parameters
        ----------
        X : DistanceMatrix
            Primary distances
        y : ignored

        Returns
        -------
        self
        """
        if not isinstance(X, DistanceMatrix):
            raise InvalidInputError(f"Mutual proximity requires a DistanceMatrix, got {type(X)}.")
        method = self.method.lower() if isinstance(self.method, str) else self.method
        if method in ["normal", "gaussi"]:
            self.effective_method_ = "normal"
        elif method in ["empiric", "exact"]:
            self.effective_method_ = "empiric"
        else:
            raise ValueError(f'Mutual proximity method "{self.method}" not recognized. Try "normal" or "empiric".')
        self.verbose = validate_verbose(self.verbose)

        n = X.n
        D = X.to_square()
        # Exclude self distances from the distribution of distances to other objects
        self.mu_ = D.sum(axis=1) / (n - 1)
        squared_deviation = (D - self.mu_[:, np.newaxis]) ** 2
        squared_deviation[np.diag_indices(n)] = 0.
        self.sd_ = np.sqrt(squared_deviation.sum(axis=1) / (n - 1))
        self.n_indexed_ = n
        return self

    def transform(self, X: DistanceMatrix, y=None) -> DistanceMatrix:
        """ Transform primary distances to mutual proximity distances.

        Parameters
        ----------
        X : DistanceMatrix
            The same primary distances passed to :meth:`fit`

        Returns
        -------
        secondary : DistanceMatrix
            A new matrix with ``1 - MP(x, y)``
        """
        check_is_fitted(self, ["mu_", "sd_"])
        if not isinstance(X, DistanceMatrix) or X.n != self.n_indexed_:
            raise InvalidInputError("Mutual proximity must be applied to the fitted distance matrix.")

        n = X.n
        rows, cols = np.triu_indices(n, k=1)
        dist = X.condensed
        if self.effective_method_ == "normal":
            p1 = _normal_sf(dist, self.mu_[rows], self.sd_[rows])
            p2 = _normal_sf(dist, self.mu_[cols], self.sd_[cols])
            return DistanceMatrix(1. - p1 * p2, n=n, copy=False)

        # MP(d_{x,y}) := fraction of objects j with distance to x and y greater than d_{x,y}
        D = X.to_square()
        mp = np.zeros((n, n), dtype=np.float64)
        for x in tqdm(range(n), desc="MP (empiric) trafo", disable=self.verbose < 1):
            d_x = D[x]
            greater_x = d_x[np.newaxis, :] > d_x[:, np.newaxis]
            greater_y = D > d_x[:, np.newaxis]
            mp[x] = (greater_x & greater_y).sum(axis=1) / n
        return DistanceMatrix(1. - mp[rows, cols], n=n, copy=False)

    def fit_transform(self, X: DistanceMatrix, y=None) -> DistanceMatrix:
        return self.fit(X).transform(X)


def mutual_proximity(distance_matrix: DistanceMatrix, method: str = "normal", verbose: int = 0) -> DistanceMatrix:
    """ Mutual proximity secondary distances, see :class:`MutualProximity`. """
    return MutualProximity(method=method, verbose=verbose).fit_transform(distance_matrix)
