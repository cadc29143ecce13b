"""
Cluster Merging

Overlapping clusters that move alike are combined. Merging is repeated to
a fixed point: each merge removes two clusters and inserts one, which may
in turn overlap a third, so the scan restarts from scratch after every
merge.

Termination: every merge lowers the cluster count by one, so at most
N - 1 merges happen for N initial clusters.
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from .cluster import Cluster, TrackerContext

logger = logging.getLogger(__name__)


def should_merge(c1: Cluster, c2: Cluster, context: TrackerContext) -> bool:
    """
    Merge test for one pair.

    Clusters overlap when the Manhattan distance between centers is below
    the sum of their radii. Overlapping clusters stay apart only if both
    velocities are valid and point more than the configured angle apart.

    Args:
        c1: First cluster
        c2: Second cluster
        context: Shared tracker parameters

    Returns:
        True if the pair should be merged
    """
    if not c1.distance_to(c2) < c1.radius + c2.radius:
        return False

    threshold_deg = context.config.vel_ang_diff_deg_to_not_merge
    if threshold_deg > 0 and c1.velocity_valid and c2.velocity_valid:
        if c1.velocity_angle_to(c2) > math.radians(threshold_deg):
            # two objects passing each other
            return False
    return True


def _find_merge_pair(
    clusters: List[Cluster], context: TrackerContext
) -> Optional[Tuple[Cluster, Cluster]]:
    n = len(clusters)
    for i in range(n):
        c1 = clusters[i]
        for j in range(i + 1, n):
            c2 = clusters[j]
            if should_merge(c1, c2, context):
                return c1, c2
    return None


def merge_clusters(clusters: Dict[int, Cluster], context: TrackerContext) -> List[Cluster]:
    """
    Merge clusters in place until no pair qualifies.

    The merged cluster is appended at the end of the set, keyed by the
    stronger parent's id.

    Args:
        clusters: Live clusters keyed by id, in set order
        context: Shared tracker parameters

    Returns:
        Clusters removed by merging (both parents of every merge)
    """
    removed: List[Cluster] = []
    while True:
        pair = _find_merge_pair(list(clusters.values()), context)
        if pair is None:
            break
        c1, c2 = pair
        del clusters[c1.id]
        del clusters[c2.id]
        merged = Cluster.merged(c1, c2, context)
        clusters[merged.id] = merged
        removed.extend(pair)
        logger.debug("Merged cluster %d into %d", c2.id if merged.id == c1.id else c1.id, merged.id)

    if context.config.highway_perspective_enabled:
        for c in clusters.values():
            c.set_radius(context.default_radius)

    return removed
