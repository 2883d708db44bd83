# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
""" Plain tabular exchange of neighbor sets and distance matrices.

Neighbor sets are written one object per line::

    # n_samples k
    index<TAB>n_1,n_2,...,n_k[<TAB>d_1,d_2,...,d_k]

Distance matrices are written as one ``i j d(i, j)`` line per pair ``i < j``.
The format is meant for exchange with other tools, and is not bit-exact.
"""
import logging
import os

import numpy as np

from ..distances.matrix import DistanceMatrix
from .check import check_kneighbors

__all__ = [
    "load_distance_matrix",
    "load_neighbor_sets",
    "save_distance_matrix",
    "save_neighbor_sets",
    "validate_verbose",
]


def validate_verbose(verbose) -> int:
    """ Handle special values for verbose parameter. """
    if verbose is None:
        verbose = 0
    elif verbose < 0:
        verbose = 0
    return int(verbose)


def save_neighbor_sets(path, kneighbors: np.ndarray, kdistances: np.ndarray = None):
    """ Write k-nearest neighbor lists (and optionally their distances) to a text file.

    Parameters
    ----------
    path : str or path-like
    kneighbors : ndarray of shape (n_samples, k)
    kdistances : ndarray of shape (n_samples, k), optional
    """
    kneighbors = check_kneighbors(kneighbors, kdistances, check_sorted=False)
    n_samples, k = kneighbors.shape
    with open(path, mode="w") as fid:
        fid.write(f"# {n_samples} {k}\n")
        for i in range(n_samples):
            line = f"{i}\t" + ",".join(str(j) for j in kneighbors[i])
            if kdistances is not None:
                line += "\t" + ",".join(repr(float(d)) for d in kdistances[i])
            fid.write(line + "\n")
    logging.debug(f"Saved neighbor sets of {n_samples} objects (k={k}) to {os.fspath(path)}.")


def load_neighbor_sets(path):
    """ Read k-nearest neighbor lists written by :func:`save_neighbor_sets`.

    Returns
    -------
    kneighbors, kdistances : ndarray, ndarray or None
        Distances are None, if the file does not contain them.
    """
    with open(path, mode="r") as fid:
        header = fid.readline().lstrip("#").split()
        if len(header) != 2:
            raise ValueError(f"Invalid neighbor set file header in {os.fspath(path)}.")
        n_samples, k = (int(x) for x in header)
        kneighbors = np.empty((n_samples, k), dtype=np.intp)
        kdistances = None
        seen = np.zeros(n_samples, dtype=bool)
        for line in fid:
            line = line.strip()
            if not line:
                continue
            fields = line.split("\t")
            i = int(fields[0])
            kneighbors[i, :] = [int(j) for j in fields[1].split(",")]
            if len(fields) > 2:
                if kdistances is None:
                    kdistances = np.empty((n_samples, k), dtype=np.float64)
                kdistances[i, :] = [float(d) for d in fields[2].split(",")]
            seen[i] = True
    if not seen.all():
        raise ValueError(f"Missing neighbor sets for {(~seen).sum()} objects in {os.fspath(path)}.")
    kneighbors = check_kneighbors(kneighbors, kdistances)
    return kneighbors, kdistances


def save_distance_matrix(path, distance_matrix: DistanceMatrix):
    """ Write all pairwise distances as ``i j d`` lines, preceded by a ``# n`` header. """
    n = distance_matrix.n
    rows, cols = np.triu_indices(n, k=1)
    with open(path, mode="w") as fid:
        fid.write(f"# {n}\n")
        for i, j, d in zip(rows, cols, distance_matrix.condensed):
            fid.write(f"{i} {j} {float(d)!r}\n")


def load_distance_matrix(path) -> DistanceMatrix:
    """ Read a distance matrix written by :func:`save_distance_matrix`. """
    with open(path, mode="r") as fid:
        n = int(fid.readline().lstrip("#").strip())
        table = np.loadtxt(fid, ndmin=2)
    if table.shape[0] != n * (n - 1) // 2:
        raise ValueError(f"Expected {n * (n - 1) // 2} pairs for n={n}, found {table.shape[0]}.")
    condensed = np.empty(n * (n - 1) // 2, dtype=np.float64)
    i = table[:, 0].astype(np.intp)
    j = table[:, 1].astype(np.intp)
    condensed[DistanceMatrix.condensed_index(i, j, n)] = table[:, 2]
    return DistanceMatrix(condensed, n)
