# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
"""
The :mod:`hubminer.data` package provides the data set abstraction and example data sets.
"""
from .dataset import Dataset, check_dataset
from .load_dataset import make_gaussian_blobs

__all__ = [
    "Dataset",
    "check_dataset",
    "make_gaussian_blobs",
]
