# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
"""
The :mod:`hubminer.neighbors` package provides exact k-nearest neighbor sets
and neighbor occurrence (hubness) statistics.
"""
from .finder import NeighborSetFinder, compute_neighbor_sets
from .occurrence import OccurrenceProfile, bad_hubness_weights, hubness_penalty_weights, label_entropy
from .occurrence import occurrence_profile

__all__ = [
    "NeighborSetFinder",
    "OccurrenceProfile",
    "bad_hubness_weights",
    "compute_neighbor_sets",
    "hubness_penalty_weights",
    "label_entropy",
    "occurrence_profile",
]
