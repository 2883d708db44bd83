# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

""" Python package for hubness analysis of k-nearest neighbor sets in high-dimensional data."""

__version__ = '0.1.0'

from . import analysis
from . import data
from . import distances
from . import exceptions
from . import meta
from . import neighbors
from . import secondary
from . import utils


__all__ = ['analysis',
           'data',
           'distances',
           'exceptions',
           'meta',
           'neighbors',
           'secondary',
           'utils',
           ]
