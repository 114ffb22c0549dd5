#! /usr/bin/env python
# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

""" Main functionality of Fragquant

"""
import sys
import argparse

from fragquant import __version__
from .cli import quant as cli_quant
from .cli import check_headers as cli_check_headers
from .cli import libtype as cli_libtype


USAGE = ''' %(prog)s <command> [<args>]

The most commonly used commands are:
   quant          Estimate transcript abundances from a checkpoint
   check-headers  Check that alignment files share reference sequences
   libtype        Score an observed library type against the expected one

'''


def build_parser():
    parser = argparse.ArgumentParser(
        description='Transcript abundance estimation from equivalence-class clusters',
    )
    parser.add_argument('--version',
        action='version',
        version=__version__,
        default=__version__,
    )

    subparser = parser.add_subparsers(help='Sub-command help', dest='subcommand')

    ''' Parser for quant '''
    quant_parser = subparser.add_parser('quant',
        description='''Estimate transcript abundances from a checkpoint''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_quant.QuantOptions.add_arguments(quant_parser)
    quant_parser.set_defaults(func=cli_quant.run)

    ''' Parser for check-headers '''
    headers_parser = subparser.add_parser('check-headers',
        description='''Check that alignment files share reference sequences''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_check_headers.CheckHeadersOptions.add_arguments(headers_parser)
    headers_parser.set_defaults(func=cli_check_headers.run)

    ''' Parser for libtype '''
    libtype_parser = subparser.add_parser('libtype',
        description='''Score an observed library type against the expected one''',
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    cli_libtype.LibtypeOptions.add_arguments(libtype_parser)
    libtype_parser.set_defaults(func=cli_libtype.run)

    return parser


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    if len(argv) == 0:
        empty_parser = argparse.ArgumentParser(
            description='Transcript abundance estimation from equivalence-class clusters',
            usage=USAGE,
        )
        empty_parser.print_help(sys.stderr)
        return 1

    args = build_parser().parse_args(argv)
    if getattr(args, 'func', None) is None:
        build_parser().print_usage(sys.stderr)
        return 1
    return args.func(args)


if __name__ == '__main__':
    sys.exit(main())
