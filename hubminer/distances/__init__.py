# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
"""
The :mod:`hubminer.distances` package provides primary distance functions,
and the parallel computation of distance matrices.
"""
from .metrics import Distance, MetricKind, VALID_METRICS, get_distance
from .matrix import DistanceMatrix, DistanceMatrixBuilder, pairwise_distances

__all__ = [
    "Distance",
    "DistanceMatrix",
    "DistanceMatrixBuilder",
    "MetricKind",
    "VALID_METRICS",
    "get_distance",
    "pairwise_distances",
]
