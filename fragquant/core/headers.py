# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Check that alignment files were made against the same references."""

from dataclasses import dataclass

import pysam


@dataclass(frozen=True)
class ReferenceHeader:
    """Reference names and lengths, in header order."""
    names: tuple
    lengths: tuple

    def __len__(self):
        return len(self.names)


def read_reference_header(path):
    """Read the reference sequences from a SAM/BAM header."""
    with pysam.AlignmentFile(path, check_sq=False) as sf:
        return ReferenceHeader(tuple(sf.references), tuple(sf.lengths))


def _consistent(h1, h2):
    if len(h1) != len(h2):
        return False
    return all(n1 == n2 and l1 == l2
               for n1, n2, l1, l2 in zip(h1.names, h2.names, h1.lengths, h2.lengths))


def headers_are_consistent(headers):
    """True if every header matches the first one exactly.

    Headers match when they list the same number of references and agree on
    the name and length at every index. Zero or one header is trivially
    consistent.
    """
    headers = list(headers)
    if len(headers) <= 1:
        return True
    first = headers[0]
    return all(_consistent(first, h) for h in headers[1:])
