# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

""" Fragquant check-headers

"""
import os
import logging as lg

from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from ..core.headers import headers_are_consistent, read_reference_header


class CheckHeadersOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - samfiles:
            positional: True
            nargs: "+"
            help: Alignment files (SAM or BAM) whose reference sequences
                  should be identical.
    """ + REPORTING_OPTS


def run(args):
    """Exit status 0 when all headers agree, 1 otherwise."""
    opts = CheckHeadersOptions(args)
    console = configure_logging(opts)

    headers = []
    for path in opts.samfiles:
        hdr = read_reference_header(path)
        lg.info('{}: {} references'.format(path, len(hdr)))
        console.item(os.path.basename(path), '{:,} references'.format(len(hdr)))
        headers.append(hdr)

    if headers_are_consistent(headers):
        console.status('Headers are consistent.')
        return 0
    lg.warning('Reference headers differ between alignment files')
    console.status('Headers are NOT consistent.')
    return 1
