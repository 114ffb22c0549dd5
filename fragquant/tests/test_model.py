# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Tests for transcripts, cluster building, and library containers."""

import numpy as np
import pytest
import scipy.sparse

from fragquant.core.libformat import LibraryFormat
from fragquant.core.model import (
    AlignmentLibrary,
    ClusterForest,
    QuantLibrary,
    ReadExperiment,
    ReadLibrary,
    Transcript,
    TranscriptCluster,
)
from fragquant.utils.logmath import LOG_0


@pytest.fixture
def alignment_matrix():
    """5 fragments x 4 transcripts.

    Transcripts 0-1 share fragment 0, transcript 2 is on its own,
    transcript 3 has no alignments, fragment 4 is unmapped.
    """
    return scipy.sparse.csr_matrix(np.array([
        [1, 1, 0, 0],
        [1, 0, 0, 0],
        [0, 1, 0, 0],
        [0, 0, 1, 0],
        [0, 0, 0, 0],
    ], dtype=np.float64))


@pytest.fixture
def matrix_library(alignment_matrix):
    return AlignmentLibrary.from_alignment_matrix(
        ['A', 'B', 'C', 'D'],
        [1000, 2000, 1500, 800],
        alignment_matrix,
        [np.log(2.0), np.log(1.0), np.log(1.0), LOG_0],
        log_effective_lengths=[np.log(900.0), None, np.log(1400.0), None],
        library_format=LibraryFormat.from_string('ISR'),
    )


class TestClusterForest:
    def test_components(self, matrix_library):
        members = [c.members for c in matrix_library.clusters()]
        assert members == [[0, 1], [2], [3]]

    def test_hits(self, matrix_library):
        assert [c.num_hits for c in matrix_library.clusters()] == [3, 1, 0]

    def test_cluster_mass(self, matrix_library):
        clusters = matrix_library.clusters().get_clusters()
        assert clusters[0].log_mass == pytest.approx(np.log(3.0))
        assert clusters[2].log_mass == LOG_0

    def test_unique_and_total_counts(self, matrix_library):
        refs = matrix_library.transcripts()
        assert [t.unique_count for t in refs] == [1, 1, 1, 0]
        assert [t.total_count for t in refs] == [2, 2, 1, 0]

    def test_mapped_reads(self, matrix_library):
        assert matrix_library.num_mapped_reads() == 4

    def test_partition(self, matrix_library):
        matrix_library.clusters().check_partition(4)

    def test_overlapping_clusters_rejected(self):
        forest = ClusterForest([TranscriptCluster([0]), TranscriptCluster([0, 1])])
        with pytest.raises(AssertionError):
            forest.check_partition(2)

    def test_log_count(self):
        assert TranscriptCluster([0], 0.0, 0).log_count == LOG_0
        assert TranscriptCluster([0], 0.0, 20).log_count == pytest.approx(np.log(20))


class TestCheckpoint:
    def test_save_load(self, matrix_library, tmp_path):
        fn = str(tmp_path / 'lib.npz')
        matrix_library.save(fn)
        loaded = AlignmentLibrary.load(fn)

        assert loaded.num_mapped_reads() == 4
        assert str(loaded.library_format) == 'ISR'
        assert [c.members for c in loaded.clusters()] == [[0, 1], [2], [3]]
        assert [c.num_hits for c in loaded.clusters()] == [3, 1, 0]

        t0, t1, _, t3 = loaded.transcripts()
        assert t0.name == 'A'
        assert t0.log_effective_length == pytest.approx(np.log(900.0))
        assert t1.log_effective_length is None
        assert t3.log_mass == LOG_0
        assert t1.ref_length == 2000

    def test_no_library_format(self, tmp_path):
        lib = AlignmentLibrary([Transcript(0, 'A', 100)], ClusterForest([TranscriptCluster([0])]), 0)
        fn = str(tmp_path / 'lib.npz')
        lib.save(fn)
        assert AlignmentLibrary.load(fn).library_format is None


class TestReadExperiment:
    def test_mapped_reads_summed(self):
        transcripts = [Transcript(0, 'A', 100), Transcript(1, 'B', 200)]
        forest = ClusterForest([TranscriptCluster([0]), TranscriptCluster([1])])
        exp = ReadExperiment(transcripts, forest, [
            ReadLibrary(LibraryFormat.from_string('ISR'), 120),
            ReadLibrary(LibraryFormat.from_string('SR'), 30),
        ])
        assert isinstance(exp, QuantLibrary)
        assert exp.num_mapped_reads() == 150
        assert exp.transcripts() is transcripts
        assert len(exp.clusters()) == 2

    def test_library_interface_is_abstract(self):
        with pytest.raises(TypeError):
            QuantLibrary()
