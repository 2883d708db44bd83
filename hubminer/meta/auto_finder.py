#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
Unsupervised selection of the Minkowski exponent by hub analysis.

Hub and anti-hub rates are correlated with the quality of a metric in
high-dimensional spaces [1]_. The exponent p of the Minkowski distance
is therefore chosen such that either the hub rate or the anti-hub rate
of k-nearest neighbor sets is lowest. Following [1]_, hubs are objects
with k-occurrence >= 2k, and the default neighborhood size is k = 1.

References
----------
.. [1] `Schnitzer, D. & Flexer, A.
        Choosing the Metric in High-Dimensional Spaces Based on Hub Analysis.
        22nd European Symposium on Artificial Neural Networks, Computational
        Intelligence and Machine Learning (ESANN), 2014`
"""
from __future__ import annotations
from enum import Enum
import logging
from typing import List, NamedTuple

import numpy as np
from sklearn.base import BaseEstimator
from sklearn.utils.validation import check_is_fitted
from tqdm.auto import tqdm

from ..data.dataset import check_dataset
from ..distances.matrix import DistanceMatrix, DistanceMatrixBuilder
from ..distances.metrics import Distance
from ..exceptions import InvalidInputError
from ..neighbors.finder import NeighborSetFinder
from ..utils.check import check_exponent_range, check_neighborhood_size
from ..utils.io import validate_verbose
from ..utils.multiprocessing import DEFAULT_N_JOBS

__all__ = [
    "DEFAULT_NEIGHBORHOOD_SIZE",
    "DegreeSelectionCriterion",
    "ExponentTrial",
    "MinkowskiDegreeAutoFinder",
    "candidate_exponents",
    "find_best_exponent",
]

#: Neighborhood size used for hub analysis during exponent selection
DEFAULT_NEIGHBORHOOD_SIZE = 1


class DegreeSelectionCriterion(str, Enum):
    """ Whether hub rates or anti-hub rates are minimized """
    HUB = "hub"
    ANTIHUB = "antihub"


class ExponentTrial(NamedTuple):
    """ One evaluated Minkowski exponent.

    `is_best` marks whether the trial was the best one seen so far
    under the active criterion, when it was recorded.
    """
    exponent: float
    hub_rate: float
    antihub_rate: float
    is_best: bool


def candidate_exponents(min_exp: float, max_exp: float, step_exp: float) -> np.ndarray:
    """ Exponents ``min_exp + i * step_exp`` in increasing order.

    There are ``ceil((max_exp - min_exp) / step_exp) + 1`` candidates, where a quotient
    within a relative 1e-9 of an integer counts as that integer.
    The last one is always `max_exp`.
    """
    min_exp, max_exp, step_exp = check_exponent_range(min_exp, max_exp, step_exp)
    # Tolerate floating point error in the number of steps, e.g. (4 - .25) / .25
    quotient = (max_exp - min_exp) / step_exp
    nearest = np.round(quotient)
    if np.isclose(quotient, nearest, rtol=1e-9, atol=0.):
        n_steps = int(nearest)
    else:
        n_steps = int(np.ceil(quotient))
    exponents = min_exp + step_exp * np.arange(n_steps + 1, dtype=np.float64)
    exponents[-1] = max_exp
    return exponents


class MinkowskiDegreeAutoFinder(BaseEstimator):
    """ Find the Minkowski exponent with the lowest hub or anti-hub rate.

    All candidate exponents are evaluated exhaustively: for each, the full
    distance matrix is computed (in parallel), followed by k-nearest neighbor
    sets and their occurrence statistics. Only the best distance matrix is kept.

    Parameters
    ----------
    min_exp, max_exp, step_exp : float, default = 0.25, 4, 0.25
        Search range of exponents
    k : int, default = 1
        Neighborhood size for hub analysis
    criterion : "antihub" or "hub", default = "antihub"
        Minimize the fraction of anti-hubs (k-occurrence = 0)
        or hubs (k-occurrence >= hub_size * k).
    hub_size : float, default = 2
    patience : int, optional
        Stop early after this many consecutive trials without improvement.
        By default, all candidates are evaluated.
    n_jobs : int, default = 8
        Threads for distance matrix calculations
    verbose : int, default = 0
        If verbose > 0, show progress bar.

    Attributes
    ----------
    best_exponent_ : float
        Earliest exponent (in increasing order) that achieves the minimum rate
    best_matrix_ : DistanceMatrix
        Distance matrix for `best_exponent_`
    trials_ : list of ExponentTrial
        Search log
    tested_exponents_, hub_rates_, antihub_rates_ : ndarray
    """

    def __init__(
            self,
            min_exp: float = .25,
            max_exp: float = 4.,
            step_exp: float = .25,
            k: int = DEFAULT_NEIGHBORHOOD_SIZE,
            criterion: str = "antihub",
            hub_size: float = 2.,
            patience: int = None,
            n_jobs: int = DEFAULT_N_JOBS,
            verbose: int = 0,
    ):
        self.min_exp = min_exp
        self.max_exp = max_exp
        self.step_exp = step_exp
        self.k = k
        self.criterion = criterion
        self.hub_size = hub_size
        self.patience = patience
        self.n_jobs = n_jobs
        self.verbose = verbose

    def fit(self, X, y=None) -> MinkowskiDegreeAutoFinder:
        """ Evaluate all candidate exponents on vector data `X`.

        Parameters
        ----------
        X : Dataset, array-like, sparse matrix, or sequence of mappings
        y : ignored
            The search is unsupervised.

        Returns
        -------
        self
        """
        if X is None:
            raise InvalidInputError("Data set must not be None.")
        if isinstance(X, DistanceMatrix):
            raise InvalidInputError("Exponent search requires vector data, not a precomputed distance matrix.")
        dataset = check_dataset(X)
        exponents = candidate_exponents(self.min_exp, self.max_exp, self.step_exp)
        try:
            criterion = DegreeSelectionCriterion(self.criterion)
        except ValueError:
            raise ValueError(f"Unknown selection criterion '{self.criterion}'. "
                             f"Must be one of {[c.value for c in DegreeSelectionCriterion]}.")
        k = check_neighborhood_size(self.k, len(dataset))
        if self.patience is not None and self.patience < 1:
            raise ValueError(f"Patience must be a positive integer or None, got {self.patience}.")
        self.verbose = validate_verbose(self.verbose)

        trials: List[ExponentTrial] = []
        best_rate = np.inf
        best_exponent = None
        best_matrix = None
        non_improving = 0
        for p in tqdm(exponents, desc="Minkowski exponents", disable=self.verbose < 1):
            p = float(p)
            distance_matrix = DistanceMatrixBuilder(
                metric=Distance("minkowski", p=p),
                n_jobs=self.n_jobs,
            ).build(dataset)
            nsf = NeighborSetFinder(k=k, hub_size=self.hub_size).fit(distance_matrix)
            hub_rate = nsf.hub_rate()
            antihub_rate = nsf.antihub_rate()
            rate = antihub_rate if criterion is DegreeSelectionCriterion.ANTIHUB else hub_rate

            # Earliest exponent wins ties
            is_best = rate < best_rate
            if is_best:
                best_rate = rate
                best_exponent = p
                best_matrix = distance_matrix
                non_improving = 0
            else:
                non_improving += 1
            trials.append(ExponentTrial(exponent=p, hub_rate=hub_rate, antihub_rate=antihub_rate, is_best=is_best))
            logging.debug(f"Minkowski p={p:.4g}: hub rate {hub_rate:.4f}, anti-hub rate {antihub_rate:.4f}"
                          f"{' (best so far)' if is_best else ''}")

            if self.patience is not None and non_improving >= self.patience:
                logging.info(f"Stopping exponent search after {non_improving} trials without improvement.")
                break

        self.best_exponent_ = best_exponent
        self.best_matrix_ = best_matrix
        self.best_rate_ = best_rate
        self.trials_ = trials
        self.tested_exponents_ = np.array([t.exponent for t in trials])
        self.hub_rates_ = np.array([t.hub_rate for t in trials])
        self.antihub_rates_ = np.array([t.antihub_rate for t in trials])
        if self.verbose > 0:
            logging.info(f"Best Minkowski exponent: p={best_exponent} "
                         f"({criterion.value} rate {best_rate:.4f}).")
        return self

    def best_distance(self) -> Distance:
        """ Minkowski distance with the selected exponent """
        check_is_fitted(self, "best_exponent_")
        return Distance("minkowski", p=self.best_exponent_)


def find_best_exponent(
        dataset,
        min_exp: float = .25,
        max_exp: float = 4.,
        step_exp: float = .25,
        k: int = DEFAULT_NEIGHBORHOOD_SIZE,
        criterion: str = "antihub",
        n_jobs: int = DEFAULT_N_JOBS,
) -> (float, DistanceMatrix, List[ExponentTrial]):
    """ Find the Minkowski exponent with the lowest hub or anti-hub rate.

    Inputs are validated before any distances are computed.

    Returns
    -------
    best_exponent, best_matrix, trials : float, DistanceMatrix, list of ExponentTrial
    """
    if not isinstance(dataset, DistanceMatrix):
        dataset = check_dataset(dataset)
    check_exponent_range(min_exp, max_exp, step_exp)
    finder = MinkowskiDegreeAutoFinder(
        min_exp=min_exp,
        max_exp=max_exp,
        step_exp=step_exp,
        k=k,
        criterion=criterion,
        n_jobs=n_jobs,
    ).fit(dataset)
    return finder.best_exponent_, finder.best_matrix_, finder.trials_
