# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Tests for cluster mass projection.

Tests cover:
- Proportional split when bounds are respected
- Singleton clusters are never re-projected
- Re-projection onto [unique, total] bounds conserves the cluster count
- Zero-mass clusters and zero-mass transcripts
- Jointly infeasible bounds
"""
import logging

import numpy as np
import pytest
import scipy.sparse
from numpy.testing import assert_array_almost_equal

from fragquant.core.model import (
    AlignmentLibrary,
    ClusterForest,
    Transcript,
    TranscriptCluster,
)
from fragquant.core.projection import project_clusters
from fragquant.utils.logmath import LOG_0


def make_library(specs, clusters, num_mapped=100):
    """specs: list of (mass, unique, total); masses are linear."""
    transcripts = [
        Transcript(i, f'T{i}', 1000, None, unique, total,
                   np.log(mass) if mass > 0 else LOG_0)
        for i, (mass, unique, total) in enumerate(specs)
    ]
    forest = ClusterForest([
        TranscriptCluster(members, np.log(sum(specs[m][0] for m in members)) if any(
            specs[m][0] > 0 for m in members) else LOG_0, hits)
        for members, hits in clusters
    ])
    return AlignmentLibrary(transcripts, forest, num_mapped)


def counts(library):
    return np.array([t.projected_count for t in library.transcripts()])


# --- Fixtures ---

@pytest.fixture
def feasible_library():
    """Proportional split already within bounds."""
    return make_library(
        [(0.25, 0, 10), (0.75, 10, 40)],
        [([0, 1], 20)],
    )


@pytest.fixture
def violating_library():
    """Naive split puts T0 below its unique count."""
    return make_library(
        [(0.1, 5, 10), (0.9, 0, 20)],
        [([0, 1], 20)],
    )


# --- Proportional split ---

class TestProportionalSplit:
    def test_counts_follow_mass(self, feasible_library):
        nproj = project_clusters(feasible_library)
        assert nproj == 0
        assert_array_almost_equal(counts(feasible_library), [5.0, 15.0])

    def test_conservation(self, feasible_library):
        project_clusters(feasible_library)
        assert counts(feasible_library).sum() == pytest.approx(20.0)


class TestSingleton:
    def test_singleton_gets_cluster_count(self):
        # total_count is exceeded, but singletons are never re-projected
        lib = make_library([(1.0, 0, 3)], [([0], 10)])
        nproj = project_clusters(lib)
        assert nproj == 0
        assert counts(lib)[0] == pytest.approx(10.0)


# --- Re-projection ---

class TestReprojection:
    def test_lower_bound_enforced(self, violating_library):
        nproj = project_clusters(violating_library)
        assert nproj == 1
        assert_array_almost_equal(counts(violating_library), [5.0, 15.0])

    def test_upper_bound_enforced(self):
        lib = make_library(
            [(0.9, 0, 10), (0.1, 0, 30)],
            [([0, 1], 30)],
        )
        project_clusters(lib)
        assert_array_almost_equal(counts(lib), [10.0, 20.0])

    def test_feasibility_and_conservation(self):
        specs = [(0.70, 2, 12), (0.05, 6, 20), (0.20, 0, 4), (0.05, 1, 40)]
        lib = make_library(specs, [([0, 1, 2, 3], 50)])
        project_clusters(lib)
        c = counts(lib)
        assert c.sum() == pytest.approx(50.0)
        for (_, unique, total), x in zip(specs, c):
            assert unique - 1e-9 <= x <= total + 1e-9

    def test_slack_members_absorb_excess(self):
        # T0 overflows; only T1 has room to take the surplus
        lib = make_library(
            [(0.8, 0, 4), (0.1, 0, 100), (0.1, 1, 1)],
            [([0, 1, 2], 10)],
        )
        project_clusters(lib)
        assert_array_almost_equal(counts(lib), [4.0, 5.0, 1.0])

    def test_other_clusters_untouched(self):
        lib = make_library(
            [(0.1, 5, 10), (0.9, 0, 20), (1.0, 2, 8)],
            [([0, 1], 20), ([2], 7)],
        )
        project_clusters(lib)
        assert counts(lib)[2] == pytest.approx(7.0)


class TestInfeasibleBounds:
    def test_count_below_unique_sum(self, caplog):
        lib = make_library(
            [(0.5, 8, 10), (0.5, 8, 10)],
            [([0, 1], 10)],
        )
        logger = logging.getLogger('fragquant.test.projection')
        with caplog.at_level(logging.WARNING, logger='fragquant.test.projection'):
            project_clusters(lib, logger=logger)
        assert_array_almost_equal(counts(lib), [5.0, 5.0])
        assert 'below the sum of unique counts' in caplog.text

    def test_count_above_total_sum(self):
        lib = make_library(
            [(0.5, 0, 2), (0.5, 0, 6)],
            [([0, 1], 16)],
        )
        project_clusters(lib)
        assert_array_almost_equal(counts(lib), [4.0, 12.0])


# --- Zero mass ---

class TestZeroMass:
    def test_zero_mass_cluster_warns(self, caplog):
        lib = make_library([(0.0, 0, 5), (0.0, 0, 5)], [([0, 1], 5)])
        lib.transcripts()[0].projected_count = 3.0
        logger = logging.getLogger('fragquant.test.zeromass')
        with caplog.at_level(logging.WARNING, logger='fragquant.test.zeromass'):
            project_clusters(lib, logger=logger)
        assert 'cluster 0 has 0 mass' in caplog.text
        assert_array_almost_equal(counts(lib), [0.0, 0.0])

    def test_zero_mass_transcript(self):
        lib = make_library(
            [(0.0, 0, 5), (1.0, 0, 20)],
            [([0, 1], 12)],
        )
        project_clusters(lib)
        assert_array_almost_equal(counts(lib), [0.0, 12.0])


# --- From an alignment matrix ---

class TestMatrixLibrary:
    def test_conservation_per_cluster(self):
        rng = np.random.default_rng(7)
        dense = (rng.random((200, 12)) < 0.15).astype(np.float64)
        matrix = scipy.sparse.csr_matrix(dense)
        masses = np.log(rng.random(12) + 0.01)
        lib = AlignmentLibrary.from_alignment_matrix(
            [f'T{i}' for i in range(12)], [1000] * 12, matrix, masses)
        project_clusters(lib)
        refs = lib.transcripts()
        for cluster in lib.clusters():
            total = sum(refs[t].projected_count for t in cluster.members)
            assert total == pytest.approx(cluster.num_hits)


# --- Preconditions ---

class TestPreconditions:
    def test_cluster_mass_must_match_members(self):
        transcripts = [
            Transcript(0, 'A', 1000, None, 0, 20, np.log(0.5)),
            Transcript(1, 'B', 1000, None, 0, 20, np.log(0.5)),
        ]
        # members sum to mass 1.0 but the cluster claims 2.0
        forest = ClusterForest([TranscriptCluster([0, 1], np.log(2.0), 10)])
        lib = AlignmentLibrary(transcripts, forest, 10)
        with pytest.raises(AssertionError):
            project_clusters(lib)

    def test_overlapping_clusters_rejected(self):
        transcripts = [
            Transcript(0, 'A', 1000, None, 0, 20, np.log(0.5)),
            Transcript(1, 'B', 1000, None, 0, 20, np.log(0.5)),
        ]
        forest = ClusterForest([
            TranscriptCluster([0, 1], 0.0, 10),
            TranscriptCluster([1], np.log(0.5), 4),
        ])
        lib = AlignmentLibrary(transcripts, forest, 14)
        with pytest.raises(AssertionError):
            project_clusters(lib)

    def test_massless_member_ignores_unique_bound(self):
        # T0 has 3 unique reads but no mass: it stays at 0, no re-projection
        lib = make_library(
            [(0.0, 3, 5), (1.0, 0, 20)],
            [([0, 1], 10)],
        )
        assert project_clusters(lib) == 0
        assert_array_almost_equal(counts(lib), [0.0, 10.0])
