# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.meta` package provides the selection of distance parameters by hub analysis.
"""
from .auto_finder import DegreeSelectionCriterion, ExponentTrial, MinkowskiDegreeAutoFinder
from .auto_finder import candidate_exponents, find_best_exponent

__all__ = [
    "DegreeSelectionCriterion",
    "ExponentTrial",
    "MinkowskiDegreeAutoFinder",
    "candidate_exponents",
    "find_best_exponent",
]
