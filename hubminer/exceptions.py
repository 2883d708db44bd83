# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

"""
The :mod:`hubminer.exceptions` module includes all custom errors raised
by hubminer.
"""

__all__ = [
    "HubMinerError",
    "InvalidInputError",
    "InvalidRangeError",
    "InvalidNeighborhoodSizeError",
    "DistanceComputationError",
]


class HubMinerError(Exception):
    """ Base class for all errors raised by hubminer. """


class InvalidInputError(HubMinerError, ValueError):
    """ Raised for empty or missing data sets, or inconsistent inputs. """


class InvalidRangeError(HubMinerError, ValueError):
    """ Raised for malformed exponent ranges, e.g. ``min_exp > max_exp``. """


class InvalidNeighborhoodSizeError(HubMinerError, ValueError):
    """ Raised if the neighborhood size k is not in ``[1, n_samples)``. """


class DistanceComputationError(HubMinerError, RuntimeError):
    """ Raised if the distance function fails for any pair of objects.

    The original exception is available as ``__cause__``.
    """
