# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Library format value type and observed-format classification.

A library format describes how the ends of a fragment align relative to the
reference: whether the library is paired, how the mates face each other, and
which strand(s) they come from. Library-type strings follow the usual
convention::

    I/O/M   mates face inward (TOWARD), outward (AWAY) or the same way (SAME)
    S/U     stranded or unstranded
    F/R     read 1 (or the single read) comes from the forward/reverse strand

e.g. ``ISR`` is a paired, inward-facing library where read 1 is antisense,
and ``SF`` is a stranded single-end library.
"""

import logging as lg
from dataclasses import dataclass
from enum import Enum

import numpy as np

from .errors import LibraryFormatError


class ReadType(Enum):
    PAIRED_END = 'paired_end'
    SINGLE_END = 'single_end'


class ReadOrientation(Enum):
    TOWARD = 'toward'
    AWAY = 'away'
    SAME = 'same'
    NONE = 'none'


class ReadStrandedness(Enum):
    S = 'S'     # sense
    A = 'A'     # antisense
    SA = 'SA'   # read 1 sense, read 2 antisense
    AS = 'AS'   # read 1 antisense, read 2 sense
    U = 'U'     # unstranded


class OrphanStatus(Enum):
    LEFT_ORPHAN = 'left orphan'
    RIGHT_ORPHAN = 'right orphan'
    PAIRED = 'paired'

    def __str__(self):
        return self.value


_PE = ReadType.PAIRED_END
_SE = ReadType.SINGLE_END

_LIBTYPE_STRINGS = {
    'ISF': (_PE, ReadOrientation.TOWARD, ReadStrandedness.SA),
    'ISR': (_PE, ReadOrientation.TOWARD, ReadStrandedness.AS),
    'IU': (_PE, ReadOrientation.TOWARD, ReadStrandedness.U),
    'OSF': (_PE, ReadOrientation.AWAY, ReadStrandedness.SA),
    'OSR': (_PE, ReadOrientation.AWAY, ReadStrandedness.AS),
    'OU': (_PE, ReadOrientation.AWAY, ReadStrandedness.U),
    'MSF': (_PE, ReadOrientation.SAME, ReadStrandedness.S),
    'MSR': (_PE, ReadOrientation.SAME, ReadStrandedness.A),
    'MU': (_PE, ReadOrientation.SAME, ReadStrandedness.U),
    'SF': (_SE, ReadOrientation.NONE, ReadStrandedness.S),
    'SR': (_SE, ReadOrientation.NONE, ReadStrandedness.A),
    'U': (_SE, ReadOrientation.NONE, ReadStrandedness.U),
}
_LIBTYPE_NAMES = {v: k for k, v in _LIBTYPE_STRINGS.items()}


@dataclass(frozen=True)
class LibraryFormat:
    """Immutable (type, orientation, strandedness) triple."""
    read_type: ReadType
    orientation: ReadOrientation
    strandedness: ReadStrandedness

    def __post_init__(self):
        if self.read_type is ReadType.SINGLE_END and self.orientation is not ReadOrientation.NONE:
            raise ValueError(
                f"Orientation '{self.orientation.name}' is not allowed for single-end reads. "
                f"Allowed: ['NONE']"
            )

    @classmethod
    def from_string(cls, libtype):
        """Parse a library-type string such as ``ISR`` or ``SF``."""
        key = libtype.strip().upper()
        if key not in _LIBTYPE_STRINGS:
            raise ValueError(
                f"Unknown library type '{libtype}'. "
                f'Allowed: {sorted(_LIBTYPE_STRINGS)}'
            )
        return cls(*_LIBTYPE_STRINGS[key])

    @property
    def is_paired(self):
        return self.read_type is ReadType.PAIRED_END

    def __str__(self):
        key = (self.read_type, self.orientation, self.strandedness)
        if key in _LIBTYPE_NAMES:
            return _LIBTYPE_NAMES[key]
        return '{}/{}/{}'.format(self.read_type.name, self.orientation.name, self.strandedness.name)


# Returned when a single read cannot be classified. Callers treat it as
# "no usable format information".
INVALID_FORMAT = LibraryFormat(ReadType.PAIRED_END, ReadOrientation.NONE, ReadStrandedness.U)


def _strand(flag):
    """Normalise a strand flag to True/False, or None if it is not one."""
    if isinstance(flag, (bool, np.bool_)):
        return bool(flag)
    if isinstance(flag, (int, np.integer)) and flag in (0, 1):
        return bool(flag)
    return None


def hit_type_paired(end1_start, end1_fwd, end2_start, end2_fwd, logger=None):
    """Classify the observed format of an aligned read pair.

    Args:
        end1_start: Leftmost reference position of read 1.
        end1_fwd: True if read 1 aligned to the forward strand.
        end2_start: Leftmost reference position of read 2.
        end2_fwd: True if read 2 aligned to the forward strand.
        logger: Logger for the failure path. Defaults to the module logger.

    Returns:
        LibraryFormat with read type PAIRED_END.

    Raises:
        LibraryFormatError: The pair matches none of the known library types.
            This means an upstream stage handed over corrupted data; callers
            are expected to stop.
    """
    logger = logger or lg.getLogger(__name__)
    fwd1, fwd2 = _strand(end1_fwd), _strand(end2_fwd)

    if fwd1 is not None and fwd2 is not None:
        if fwd1 != fwd2:
            if fwd1:
                # read 1 forward: ISF if it starts first, else OSF
                if end1_start <= end2_start:
                    return LibraryFormat(_PE, ReadOrientation.TOWARD, ReadStrandedness.SA)
                return LibraryFormat(_PE, ReadOrientation.AWAY, ReadStrandedness.SA)
            if fwd2:
                # read 2 forward: ISR if it starts first, else OSR
                if end2_start <= end1_start:
                    return LibraryFormat(_PE, ReadOrientation.TOWARD, ReadStrandedness.AS)
                return LibraryFormat(_PE, ReadOrientation.AWAY, ReadStrandedness.AS)
        else:
            if fwd1:
                return LibraryFormat(_PE, ReadOrientation.SAME, ReadStrandedness.S)
            return LibraryFormat(_PE, ReadOrientation.SAME, ReadStrandedness.A)

    msg = ('Could not associate any known library type with read pair '
           '(end1_start={}, end1_fwd={!r}, end2_start={}, end2_fwd={!r})'.format(
               end1_start, end1_fwd, end2_start, end2_fwd))
    logger.error(msg)
    raise LibraryFormatError(msg)


def hit_type_single(start, fwd, logger=None):
    """Classify the observed format of a single (or orphaned) read.

    Unlike :func:`hit_type_paired`, an unclassifiable read is only reported
    as a warning and :data:`INVALID_FORMAT` is returned.
    """
    logger = logger or lg.getLogger(__name__)
    strand = _strand(fwd)
    if strand is not None:
        if strand:
            return LibraryFormat(_SE, ReadOrientation.NONE, ReadStrandedness.S)
        return LibraryFormat(_SE, ReadOrientation.NONE, ReadStrandedness.A)

    logger.warning('Could not associate known library type with read (start={}, fwd={!r})'.format(start, fwd))
    return INVALID_FORMAT
