# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
"""
The :mod:`hubminer.utils` package provides validation, parallelization and I/O helpers.
"""
