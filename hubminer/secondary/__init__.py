# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.secondary` package provides secondary distances
that reduce hubness: shared-neighbor distances and mutual proximity.
"""
from .shared_neighbors import SharedNeighborDistance, VALID_VARIANTS, VALID_WEIGHTINGS
from .shared_neighbors import compute_secondary_distances, hubness_weights, shared_neighbor_distance
from .mutual_proximity import MutualProximity, mutual_proximity

__all__ = [
    "MutualProximity",
    "SharedNeighborDistance",
    "VALID_VARIANTS",
    "VALID_WEIGHTINGS",
    "compute_secondary_distances",
    "hubness_weights",
    "mutual_proximity",
    "shared_neighbor_distance",
]
