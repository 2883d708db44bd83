# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.analysis` package provides methods for hubness analysis.
"""
from .estimation import Hubness, VALID_HUBNESS_MEASURES

__all__ = [
    "Hubness",
    "VALID_HUBNESS_MEASURES",
]
