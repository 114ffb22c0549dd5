# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

""" Fragquant libtype

"""
from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from ..core.compat import log_align_format_prob
from ..core.libformat import LibraryFormat


class LibtypeOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - expected:
            positional: True
            help: Library type of the experiment (e.g. ISR, IU, SF).
        - observed:
            positional: True
            help: Library type observed for a read or read pair.
    - Model Parameters:
        - incompat_prior:
            type: float
            default: -46.051701859880914
            help: Log-probability of an incompatible alignment
                  (default log(1e-20)).
    """ + REPORTING_OPTS


def run(args):
    opts = LibtypeOptions(args)
    console = configure_logging(opts)
    expected = LibraryFormat.from_string(opts.expected)
    observed = LibraryFormat.from_string(opts.observed)
    logprob = log_align_format_prob(observed, expected, opts.incompat_prior)
    console.item('Expected', str(expected))
    console.item('Observed', str(observed))
    console.item('Log prob', '{:.6g}'.format(logprob))
    return 0
