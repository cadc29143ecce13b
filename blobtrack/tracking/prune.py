"""
Cluster Pruning

Removes clusters that lost support or left the scene. Clusters carrying
timestamps from the future or a non-finite mass are removed as well.
"""

import logging
import math
from typing import Dict, List

from .cluster import Cluster, TrackerContext

logger = logging.getLogger(__name__)


def should_prune(cluster: Cluster, t: int, context: TrackerContext) -> bool:
    """
    Prune test for one cluster at time t.

    A cluster whose last event is exactly at t (e.g. spawned by the event
    that triggered this update) is always kept.

    Args:
        cluster: Candidate cluster
        t: Current update time [ticks]
        context: Shared tracker parameters

    Returns:
        True if the cluster should be removed
    """
    t0 = cluster.last_event_timestamp
    time_since_support = t - t0
    if time_since_support == 0:
        return False

    if time_since_support < 0:
        logger.warning(
            "Cluster %d last event at %d is later than update time %d, pruning", cluster.id, t0, t
        )
        return True

    mass = cluster.mass_at(t)
    if not math.isfinite(mass):
        logger.warning("Cluster %d has non-finite mass %s, pruning", cluster.id, mass)
        return True
    if mass < context.config.threshold_events_for_visible_cluster:
        return True

    return cluster.has_hit_edge(t)


def prune_clusters(clusters: Dict[int, Cluster], t: int, context: TrackerContext) -> List[Cluster]:
    """
    Remove prunable clusters in place.

    Args:
        clusters: Live clusters keyed by id
        t: Current update time [ticks]
        context: Shared tracker parameters

    Returns:
        Pruned clusters, in set order
    """
    pruned = [c for c in clusters.values() if should_prune(c, t, context)]
    for c in pruned:
        del clusters[c.id]
        logger.debug("Pruned %s", c)
    return pruned
