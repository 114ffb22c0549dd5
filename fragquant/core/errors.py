# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Exceptions raised by fragquant."""


class FragquantError(Exception):
    """Base class for fragquant errors."""


class InvariantViolation(FragquantError):
    """Input broke a guarantee made by an upstream stage."""


class LibraryFormatError(InvariantViolation):
    """A read pair could not be associated with any known library type."""
