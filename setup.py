#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

""" hubminer: Hubness analysis of k-nearest neighbor sets in high-dimensional data.

Exact neighbor sets and occurrence statistics, parallel distance matrices,
hubness-aware secondary distances, and Minkowski exponent selection.
The hubminer package is licensed under the terms the BSD 3-Clause license.
"""

import setuptools

if __name__ == "__main__":
    setuptools.setup()
