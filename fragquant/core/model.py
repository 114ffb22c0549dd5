# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Transcripts, equivalence-class clusters, and quantification libraries.

Transcripts live in a single list indexed by their id. Clusters and
libraries refer to transcripts only through those ids.
"""

import logging as lg
from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np
import scipy.sparse
from scipy.optimize import brentq
from scipy.sparse.csgraph import connected_components
from scipy.special import logsumexp

from ..utils.logmath import LOG_0, log_count, safe_exp
from .libformat import LibraryFormat


@dataclass
class Transcript:
    """A reference transcript and its per-stage quantities."""
    id: int
    name: str
    ref_length: int
    log_effective_length: float = None  # None: not computed or disabled
    unique_count: int = 0
    total_count: int = 0
    log_mass: float = LOG_0
    projected_count: float = 0.0


@dataclass
class TranscriptCluster:
    """Transcripts sharing ambiguously assigned fragments."""
    members: list
    log_mass: float = LOG_0
    num_hits: int = 0

    def __len__(self):
        return len(self.members)

    @property
    def log_count(self):
        return log_count(self.num_hits)

    def project_to_polytope(self, transcripts, logger=None):
        """Move members' projected counts onto the feasible region.

        The feasible region is ``{x : unique <= x <= total, sum(x) = C}``
        where ``C`` is the cluster's count. The current projected counts are
        projected onto it in the Euclidean sense: each member is shifted by a
        common amount ``t`` and clipped to its own bounds, with ``t`` chosen
        so the clipped values sum to ``C``.

        If the bounds cannot be met jointly the violated bound vector is
        rescaled to sum to ``C``, so the cluster total is always conserved.

        Args:
            transcripts: The shared transcript list (modified in place).
            logger: Logger for infeasibility warnings.

        Returns:
            numpy array of the new counts, in member order.
        """
        logger = logger or lg.getLogger(__name__)
        target = safe_exp(self.log_count)
        y = np.array([transcripts[t].projected_count for t in self.members], dtype=np.float64)
        lo = np.array([transcripts[t].unique_count for t in self.members], dtype=np.float64)
        hi = np.array([transcripts[t].total_count for t in self.members], dtype=np.float64)
        hi = np.maximum(hi, lo)
        lo_sum, hi_sum = lo.sum(), hi.sum()

        if target <= lo_sum:
            if target < lo_sum:
                logger.warning(
                    'Cluster count {} is below the sum of unique counts {}'.format(target, lo_sum))
            x = lo * (target / lo_sum) if lo_sum > 0 else np.zeros_like(lo)
        elif target >= hi_sum:
            if target > hi_sum:
                logger.warning(
                    'Cluster count {} exceeds the sum of total counts {}'.format(target, hi_sum))
            if hi_sum > 0:
                x = hi * (target / hi_sum)
            else:
                x = np.full_like(hi, target / len(hi))
        else:
            def _excess(t):
                return np.clip(y - t, lo, hi).sum() - target

            shift = brentq(_excess, (y - hi).min(), (y - lo).max(), xtol=1e-12)
            x = np.clip(y - shift, lo, hi)
            # put the root-finding residual on the member with most room
            resid = target - x.sum()
            if resid != 0:
                slack = (hi - x) if resid > 0 else (x - lo)
                x[np.argmax(slack)] += resid

        assert np.isclose(x.sum(), target), 'projection did not conserve cluster count'
        for tid, count in zip(self.members, x):
            transcripts[tid].projected_count = float(count)
        return x


class ClusterForest:
    """Ordered partition of the transcript ids into clusters."""

    def __init__(self, clusters=None):
        self._clusters = list(clusters) if clusters is not None else []

    def __len__(self):
        return len(self._clusters)

    def __iter__(self):
        return iter(self._clusters)

    def get_clusters(self):
        return list(self._clusters)

    def check_partition(self, n_transcripts):
        """Assert every transcript id belongs to exactly one cluster."""
        ids = sorted(t for c in self._clusters for t in c.members)
        assert ids == list(range(n_transcripts)), 'clusters do not partition the transcripts'

    @classmethod
    def from_alignment_matrix(cls, matrix, transcripts):
        """Build clusters from a fragment x transcript alignment matrix.

        Two transcripts share a cluster when some fragment aligns to both
        (connected components of the transcript adjacency graph). Also fills
        each transcript's ``unique_count`` and ``total_count`` and gives each
        cluster the fragment count and log-sum of its members' masses.

        Args:
            matrix: N x K sparse matrix; any nonzero means fragment i aligns
                to transcript j.
            transcripts: List of K transcripts (modified in place).

        Returns:
            ClusterForest.
        """
        binary = scipy.sparse.csr_matrix((matrix != 0).astype(np.float64))
        binary.sum_duplicates()
        K = binary.shape[1]
        assert K == len(transcripts), 'matrix columns must match transcripts'

        adj = binary.T @ binary
        n_components, labels = connected_components(adj, directed=False)

        row_nnz = np.diff(binary.indptr)
        first_col = binary.indices[binary.indptr[:-1][row_nnz > 0]]
        num_hits = np.bincount(labels[first_col], minlength=n_components)

        unique_cols = binary.indices[binary.indptr[:-1][row_nnz == 1]]
        unique = np.bincount(unique_cols, minlength=K)
        total = np.asarray(binary.sum(axis=0)).ravel().astype(np.int64)

        for t in transcripts:
            t.unique_count = int(unique[t.id])
            t.total_count = int(total[t.id])

        clusters = []
        for c in range(n_components):
            members = np.where(labels == c)[0].tolist()
            masses = np.array([transcripts[t].log_mass for t in members], dtype=np.float64)
            masses = masses[np.isfinite(masses)]
            cluster_mass = float(logsumexp(masses)) if len(masses) else LOG_0
            clusters.append(TranscriptCluster(members, cluster_mass, int(num_hits[c])))
        return cls(clusters)


class QuantLibrary(ABC):
    """What the projection and abundance stages need from a library."""

    @abstractmethod
    def transcripts(self):
        """The shared transcript list, indexed by transcript id."""

    @abstractmethod
    def num_mapped_reads(self):
        """Total number of mapped fragments."""

    @abstractmethod
    def clusters(self):
        """The ClusterForest partitioning ``transcripts()``."""


class AlignmentLibrary(QuantLibrary):
    """A single paired or unpaired alignment library."""

    def __init__(self, transcripts, forest, num_mapped_reads, library_format=None):
        self._transcripts = transcripts
        self._forest = forest
        self._num_mapped = int(num_mapped_reads)
        self.library_format = library_format

    def transcripts(self):
        return self._transcripts

    def num_mapped_reads(self):
        return self._num_mapped

    def clusters(self):
        return self._forest

    @classmethod
    def from_alignment_matrix(cls, names, ref_lengths, matrix, log_masses,
                              log_effective_lengths=None, library_format=None):
        """Build a library from an alignment matrix and estimated masses.

        Fragments (rows) with no alignment are not counted as mapped.
        """
        if log_effective_lengths is None:
            log_effective_lengths = [None] * len(names)
        transcripts = [
            Transcript(i, n, int(rl), el, log_mass=float(m))
            for i, (n, rl, el, m) in enumerate(zip(names, ref_lengths, log_effective_lengths, log_masses))
        ]
        forest = ClusterForest.from_alignment_matrix(matrix, transcripts)
        num_mapped = sum(c.num_hits for c in forest)
        return cls(transcripts, forest, num_mapped, library_format)

    def save(self, filename):
        _clusters = self._forest.get_clusters()
        _members = [np.asarray(c.members, dtype=np.int64) for c in _clusters]
        _eff = [np.nan if t.log_effective_length is None else t.log_effective_length
                for t in self._transcripts]
        np.savez(
            filename,
            _names=np.array([t.name for t in self._transcripts], dtype=str),
            _ref_lengths=np.array([t.ref_length for t in self._transcripts], dtype=np.int64),
            _log_eff_lengths=np.array(_eff, dtype=np.float64),
            _unique=np.array([t.unique_count for t in self._transcripts], dtype=np.int64),
            _total=np.array([t.total_count for t in self._transcripts], dtype=np.int64),
            _log_mass=np.array([t.log_mass for t in self._transcripts], dtype=np.float64),
            _cluster_members=np.concatenate(_members) if _members else np.array([], dtype=np.int64),
            _cluster_sizes=np.array([len(m) for m in _members], dtype=np.int64),
            _cluster_log_mass=np.array([c.log_mass for c in _clusters], dtype=np.float64),
            _cluster_hits=np.array([c.num_hits for c in _clusters], dtype=np.int64),
            _num_mapped=self._num_mapped,
            _libtype=str(self.library_format) if self.library_format is not None else '',
        )

    @classmethod
    def load(cls, filename):
        loader = np.load(filename, allow_pickle=False)
        transcripts = []
        for i, name in enumerate(loader['_names']):
            _eff = float(loader['_log_eff_lengths'][i])
            transcripts.append(Transcript(
                id=i,
                name=str(name),
                ref_length=int(loader['_ref_lengths'][i]),
                log_effective_length=None if np.isnan(_eff) else _eff,
                unique_count=int(loader['_unique'][i]),
                total_count=int(loader['_total'][i]),
                log_mass=float(loader['_log_mass'][i]),
            ))

        offsets = np.concatenate(([0], np.cumsum(loader['_cluster_sizes'])))
        members = loader['_cluster_members']
        clusters = [
            TranscriptCluster(members[offsets[c]:offsets[c + 1]].tolist(), float(lm), int(nh))
            for c, (lm, nh) in enumerate(zip(loader['_cluster_log_mass'], loader['_cluster_hits']))
        ]
        forest = ClusterForest(clusters)
        forest.check_partition(len(transcripts))

        _libtype = str(loader['_libtype'])
        libfmt = LibraryFormat.from_string(_libtype) if _libtype else None
        return cls(transcripts, forest, int(loader['_num_mapped']), libfmt)


@dataclass
class ReadLibrary:
    """One read library (set of read files) within an experiment."""
    library_format: LibraryFormat
    num_mapped_reads: int = 0


class ReadExperiment(QuantLibrary):
    """Several read libraries quantified against one transcript set."""

    def __init__(self, transcripts, forest, read_libraries=None):
        self._transcripts = transcripts
        self._forest = forest
        self.read_libraries = list(read_libraries) if read_libraries is not None else []

    def transcripts(self):
        return self._transcripts

    def num_mapped_reads(self):
        return sum(rl.num_mapped_reads for rl in self.read_libraries)

    def clusters(self):
        return self._forest
