# -*- coding: utf-8 -*-
# SPDX-License-Identifier: BSD-3-Clause
""" Neighbor occurrence statistics derived from k-nearest neighbor lists. """
from __future__ import annotations
from typing import NamedTuple, Optional

import numpy as np

from ..exceptions import InvalidInputError
from ..utils.check import check_kneighbors

__all__ = [
    "OccurrenceProfile",
    "bad_hubness_weights",
    "hubness_penalty_weights",
    "label_entropy",
    "occurrence_profile",
]


class OccurrenceProfile(NamedTuple):
    """ Reverse neighbor counts of all objects.

    Attributes
    ----------
    total : ndarray of shape (n_samples, )
        k-occurrence: how often each object occurs in the k-NN lists of other objects (hubness)
    good : ndarray of shape (n_samples, ) or None
        Occurrences in k-NN lists of objects with the same label. None for unlabeled data.
    bad : ndarray of shape (n_samples, ) or None
        Occurrences in k-NN lists of objects with a different label. None for unlabeled data.
    class_occurrence : ndarray of shape (n_classes, n_samples) or None
        Occurrences split by the label of the object whose k-NN list they occur in.
    k : int
        Neighborhood size
    """
    total: np.ndarray
    good: Optional[np.ndarray]
    bad: Optional[np.ndarray]
    class_occurrence: Optional[np.ndarray]
    k: int

    @property
    def n_samples(self) -> int:
        return self.total.size

    @property
    def is_labeled(self) -> bool:
        return self.good is not None


def occurrence_profile(kneighbors: np.ndarray, labels: np.ndarray = None, n_classes: int = None) -> OccurrenceProfile:
    """ Count neighbor occurrences in k-nearest neighbor lists.

    Parameters
    ----------
    kneighbors : ndarray of shape (n_samples, k)
        k-NN lists of all objects, indices into the same objects
    labels : ndarray of shape (n_samples, ), optional
        Integer-encoded class labels in ``[0, n_classes)``.
        Without labels, only total occurrences are counted.
    n_classes : int, optional
        Number of classes. Inferred from `labels`, if None.

    Returns
    -------
    profile : OccurrenceProfile
    """
    kneighbors = check_kneighbors(kneighbors, check_self=False)
    n_samples, k = kneighbors.shape
    total = np.bincount(kneighbors.ravel(), minlength=n_samples)

    if labels is None:
        return OccurrenceProfile(total=total, good=None, bad=None, class_occurrence=None, k=k)

    labels = np.asarray(labels)
    if labels.shape != (n_samples, ):
        raise InvalidInputError(f"Expected {n_samples} labels, got array of shape {labels.shape}.")
    if not np.issubdtype(labels.dtype, np.integer):
        raise InvalidInputError("Labels must be integer-encoded, e.g. as Dataset.encoded_labels.")
    if n_classes is None:
        n_classes = int(labels.max()) + 1

    same_label = labels[kneighbors] == labels[:, np.newaxis]
    good = np.bincount(kneighbors[same_label], minlength=n_samples)
    bad = np.bincount(kneighbors[~same_label], minlength=n_samples)
    class_occurrence = np.zeros((n_classes, n_samples), dtype=np.int64)
    np.add.at(class_occurrence, (np.repeat(labels, k), kneighbors.ravel()), 1)
    return OccurrenceProfile(total=total, good=good, bad=bad, class_occurrence=class_occurrence, k=k)


def label_entropy(counts: np.ndarray) -> np.ndarray:
    """ Row-wise Shannon entropy (bits) of label counts, zero for empty rows """
    counts = np.asarray(counts, dtype=np.float64)
    totals = counts.sum(axis=1, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        prob = np.where(totals > 0, counts / totals, 0.)
        terms = np.where(prob > 0, prob * np.log2(prob), 0.)
    return -terms.sum(axis=1)


def hubness_penalty_weights(occurrence: OccurrenceProfile) -> np.ndarray:
    """ Instance weights ``log(n / (N_k + 1))``, scaled to a maximum absolute value of one.

    Frequent neighbors (hubs) get low weights.
    """
    n_samples = occurrence.n_samples
    weights = np.log(n_samples / (occurrence.total + 1.))
    max_weight = np.abs(weights).max()
    if max_weight > 0:
        weights /= max_weight
    return weights


def bad_hubness_weights(occurrence: OccurrenceProfile) -> np.ndarray:
    """ Instance weights ``exp(-h_b)`` from standardized bad occurrences h_b (hw-kNN).

    Objects that often occur as neighbors of other classes get low weights.
    Requires a labeled occurrence profile.
    """
    if not occurrence.is_labeled:
        raise InvalidInputError("Bad hubness weights require class labels.")
    bad = occurrence.bad.astype(np.float64)
    std = bad.std()
    standardized = (bad - bad.mean()) / std if std > 0 else np.zeros_like(bad)
    return np.exp(-standardized)
