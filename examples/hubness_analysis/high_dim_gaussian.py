"""
========================================
Example: Hubness-aware distances
========================================

This example shows how to choose a Minkowski exponent by hub analysis,
and how shared-neighbor secondary distances change neighbor occurrence statistics
in high-dimensional data.
"""
import logging

from hubminer.analysis import Hubness
from hubminer.data import make_gaussian_blobs
from hubminer.meta import MinkowskiDegreeAutoFinder
from hubminer.neighbors import NeighborSetFinder
from hubminer.secondary import SharedNeighborDistance

logging.basicConfig(level=logging.INFO)

# High-dimensional artificial data
dataset = make_gaussian_blobs(n_samples=2_000,
                              n_features=500,
                              n_classes=2,
                              class_sep=.5,
                              random_state=543)

# Minkowski exponent with fewest anti-hubs
finder = MinkowskiDegreeAutoFinder(min_exp=.5,
                                   max_exp=3.,
                                   step_exp=.5,
                                   criterion='antihub',
                                   n_jobs=-1,
                                   verbose=1)
finder.fit(dataset)
for trial in finder.trials_:
    print(f'p={trial.exponent:.2f}: hub rate {trial.hub_rate:.3f}, anti-hub rate {trial.antihub_rate:.3f}')

# Primary neighbor sets on the selected distances
primary = NeighborSetFinder(k=10, verbose=1).fit(finder.best_matrix_, dataset.labels)
robin_hood = Hubness(return_value='robinhood').fit(primary).score()
print(f'Primary: hubness (Robin Hood) {robin_hood:.3f}, '
      f'label mismatch {primary.label_mismatch_rate():.3f}')

# Hubness-aware shared neighbor distances
snd = SharedNeighborDistance(k=50,
                             variant='simhub',
                             metric=finder.best_distance(),
                             n_jobs=-1)
snd.fit(dataset)
secondary = snd.secondary_neighbors(k=10)
robin_hood = Hubness(return_value='robinhood').fit(secondary).score()
print(f'Secondary: hubness (Robin Hood) {robin_hood:.3f}, '
      f'label mismatch {secondary.label_mismatch_rate():.3f}')
