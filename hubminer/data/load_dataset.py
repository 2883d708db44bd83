# SPDX-License-Identifier: BSD-3-Clause

import numpy as np
from sklearn.utils import check_random_state

from .dataset import Dataset

__all__ = ['make_gaussian_blobs']


def make_gaussian_blobs(n_samples: int = 200, n_features: int = 50, n_classes: int = 2,
                        class_sep: float = 1., random_state=None) -> Dataset:
    """Create a labeled data set of isotropic Gaussian blobs.

    With many features, such data exhibits hubness under Minkowski distances.

    Returns
    -------
    dataset : Dataset
        Vector data, and class labels
    """
    rng = check_random_state(random_state)
    centers = rng.normal(scale=class_sep, size=(n_classes, n_features))
    y = np.arange(n_samples) % n_classes
    X = centers[y] + rng.normal(size=(n_samples, n_features))
    return Dataset(X, y)
