# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
from multiprocessing import cpu_count

__all__ = [
    "DEFAULT_N_JOBS",
    "validate_n_jobs",
]

#: Default number of threads for distance matrix calculations
DEFAULT_N_JOBS = 8


def validate_n_jobs(n_jobs, n_samples: int = None) -> int:
    """ Handle special integers and non-integer `n_jobs` values.

    Parameters
    ----------
    n_jobs : int or None
        Requested number of parallel workers. ``None`` means `DEFAULT_N_JOBS`,
        ``-1`` means all CPU cores.
    n_samples : int, optional
        If given, the number of workers is clamped to at most `n_samples`,
        because workers operate on disjoint ranges of rows.
    """
    if n_jobs is None:
        n_jobs = DEFAULT_N_JOBS
    elif n_jobs == -1:
        n_jobs = cpu_count()
    elif n_jobs < -1 or n_jobs == 0:
        raise ValueError(f"Number of parallel workers 'n_jobs' must be "
                         f"a positive integer, or ``-1`` to use all local"
                         f" CPU cores. Was {n_jobs} instead.")
    if n_samples is not None:
        n_jobs = max(1, min(n_jobs, n_samples))
    return int(n_jobs)
