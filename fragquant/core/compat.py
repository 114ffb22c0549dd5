# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Log-probability that an observed library format fits the expected one."""

import logging as lg

from ..utils.logmath import LOG_0, LOG_1, LOG_ONEHALF, LOG_ORPHAN_PROB
from .libformat import LibraryFormat, ReadStrandedness, ReadType

_ORPHAN_COMPATIBLE = (ReadStrandedness.U, ReadStrandedness.AS, ReadStrandedness.SA)


def log_align_format_prob(observed, expected, incompat_prior, logger=None):
    """Score an observed alignment format against the experiment's format.

    Args:
        observed: LibraryFormat of the read or read pair.
        expected: LibraryFormat declared (or detected) for the library.
        incompat_prior: Log-probability assigned to incompatible alignments.
        logger: Logger for the fall-through warning.

    Returns:
        Natural-log probability. ``LOG_0`` if neither argument is a
        LibraryFormat.
    """
    if isinstance(observed, LibraryFormat) and isinstance(expected, LibraryFormat):
        # Orphans in a paired library are allowed but down-weighted
        if expected.read_type is ReadType.PAIRED_END and observed.read_type is ReadType.SINGLE_END:
            if expected.strandedness in _ORPHAN_COMPATIBLE:
                return LOG_1
            if expected.strandedness is observed.strandedness:
                return LOG_ORPHAN_PROB
            return incompat_prior

        if observed.read_type is not expected.read_type or observed.orientation is not expected.orientation:
            return incompat_prior

        if expected.strandedness is ReadStrandedness.U:
            return LOG_ONEHALF
        if expected.strandedness is observed.strandedness:
            return LOG_1
        return incompat_prior

    logger = logger or lg.getLogger(__name__)
    logger.warning('log_align_format_prob: no rule matched ({!r}, {!r})'.format(observed, expected))
    return LOG_0
