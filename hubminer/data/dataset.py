# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause

from __future__ import annotations
from collections.abc import Mapping
from typing import Hashable, Optional, Union

import numpy as np
from scipy.sparse import csr_matrix, issparse
from sklearn.utils.validation import check_array

from ..exceptions import InvalidInputError

__all__ = [
    "Dataset",
    "check_dataset",
]


def _is_mapped(X) -> bool:
    return isinstance(X, (list, tuple)) and len(X) > 0 and all(isinstance(x, Mapping) for x in X)


def _mappings_to_csr(mappings) -> csr_matrix:
    indptr = [0]
    indices = []
    data = []
    for mapping in mappings:
        for index, weight in sorted(mapping.items()):
            if index < 0:
                raise InvalidInputError(f"Sparse feature indices must be non-negative, got {index}.")
            indices.append(int(index))
            data.append(float(weight))
        indptr.append(len(indices))
    n_features = max(indices) + 1 if indices else 1
    return csr_matrix(
        (np.asarray(data, dtype=np.float64), np.asarray(indices, dtype=np.intp), np.asarray(indptr)),
        shape=(len(mappings), n_features),
    )


class Dataset:
    """ Ordered collection of feature vectors with optional class labels.

    Parameters
    ----------
    X : array-like of shape (n_samples, n_features), sparse matrix, or sequence of mappings
        Feature vectors. Dense vectors are rows of a 2D array.
        Sparse vectors may be given as a scipy sparse matrix,
        or as a sequence of ``{feature_index: weight}`` mappings.
    y : array-like of shape (n_samples, ), optional
        Class labels

    Notes
    -----
    The vectors are considered immutable once placed in a data set.
    """

    def __init__(self, X, y=None):
        if X is None:
            raise InvalidInputError("Data set must not be None.")
        if isinstance(X, Dataset):
            y = X.labels if y is None else y
            X = X.mappings if X.mappings is not None else X.X
        if not issparse(X) and len(X) == 0:
            raise InvalidInputError("Data set must not be empty.")

        self.mappings = None
        if _is_mapped(X):
            self.mappings = tuple(dict(x) for x in X)
            X = _mappings_to_csr(self.mappings)
        elif issparse(X):
            if X.shape[0] == 0:
                raise InvalidInputError("Data set must not be empty.")
            X = check_array(X, accept_sparse="csr", dtype=np.float64).tocsr()
        else:
            X = check_array(X, dtype=np.float64, ensure_min_features=1)
        self.X = X
        self.is_sparse = issparse(X)

        if y is not None:
            y = np.asarray(y)
            if y.ndim != 1 or y.shape[0] != X.shape[0]:
                raise InvalidInputError(f"Expected {X.shape[0]} labels, got array of shape {y.shape}.")
            self.classes_, encoded = np.unique(y, return_inverse=True)
            self.encoded_labels = encoded.astype(np.intp)
        else:
            self.classes_ = None
            self.encoded_labels = None
        self.labels = y

    def __len__(self) -> int:
        return self.X.shape[0]

    def __repr__(self):
        kind = "mapped" if self.mappings is not None else ("sparse" if self.is_sparse else "dense")
        return f"Dataset(n_samples={len(self)}, n_features={self.n_features}, {kind}, labeled={self.is_labeled})"

    def size(self) -> int:
        return len(self)

    @property
    def n_features(self) -> int:
        return self.X.shape[1]

    @property
    def is_labeled(self) -> bool:
        return self.labels is not None

    @property
    def n_classes(self) -> int:
        return 0 if self.classes_ is None else self.classes_.size

    def vector_at(self, i: int) -> Union[np.ndarray, csr_matrix, dict]:
        """ Return the i-th feature vector in its original representation. """
        if self.mappings is not None:
            return self.mappings[i]
        if self.is_sparse:
            return self.X.getrow(i)
        return self.X[i]

    def label_at(self, i: int) -> Optional[Hashable]:
        """ Return the label of the i-th object, or None for unlabeled data. """
        if self.labels is None:
            return None
        return self.labels[i]


def check_dataset(X, y=None) -> Dataset:
    """ Wrap `X` (and `y`) into a :class:`Dataset`, unless it already is one. """
    if isinstance(X, Dataset) and y is None:
        return X
    return Dataset(X, y)
