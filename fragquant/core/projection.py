# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Redistribute cluster mass to per-transcript counts."""

import logging as lg

import numpy as np

from ..utils.logmath import LOG_0, safe_exp


def project_clusters(library, logger=None):
    """Set ``projected_count`` for every transcript in ``library``.

    Each cluster's count is split among its members in proportion to their
    mass. When that split puts some member above its total hit count or
    below its unique hit count, the cluster is re-projected onto the
    feasible region (see :meth:`TranscriptCluster.project_to_polytope`).

    Args:
        library: A QuantLibrary.
        logger: Logger for zero-mass warnings. Defaults to the module logger.

    Returns:
        Number of clusters that needed re-projection.
    """
    logger = logger or lg.getLogger(__name__)
    refs = library.transcripts()
    library.clusters().check_partition(len(refs))
    nprojected = 0

    for cluster_id, cluster in enumerate(library.clusters()):
        log_cluster_mass = cluster.log_mass
        log_cluster_count = cluster.log_count

        if log_cluster_mass == LOG_0:
            logger.warning('cluster {} has 0 mass!'.format(cluster_id))
            for tid in cluster.members:
                refs[tid].projected_count = 0.0
            continue

        requires_projection = False
        for tid in cluster.members:
            t = refs[tid]
            if t.log_mass == LOG_0:
                # massless members stay at 0 and are not held to their unique count
                t.projected_count = 0.0
            else:
                t.projected_count = float(np.exp(t.log_mass - log_cluster_mass + log_cluster_count))
                requires_projection |= (t.projected_count > t.total_count or
                                        t.projected_count < t.unique_count)

        assert np.isclose(sum(refs[tid].projected_count for tid in cluster.members),
                          safe_exp(log_cluster_count)), \
            'cluster {} mass does not match its members'.format(cluster_id)

        if len(cluster) > 1 and requires_projection:
            cluster.project_to_polytope(refs, logger=logger)
            nprojected += 1

    logger.debug('Re-projected {} of {} clusters'.format(nprojected, len(library.clusters())))
    return nprojected
