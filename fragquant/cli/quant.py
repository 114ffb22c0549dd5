# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

""" Fragquant quant

"""
import os
import logging as lg

from . import REPORTING_OPTS, SubcommandOptions, configure_logging
from .console import Stopwatch
from ..core.abundance import write_abundances
from ..core.model import AlignmentLibrary


class QuantOptions(SubcommandOptions):

    OPTS = """
    - Input Options:
        - checkpoint:
            positional: True
            help: Path to a quantification checkpoint (.npz) holding the
                  transcripts, their estimated masses and the cluster
                  partition.
    - Output Options:
        - outdir:
            default: .
            help: Output directory.
        - exp_tag:
            default: fragquant
            help: Experiment tag
    - Model Parameters:
        - no_effective_length_correction:
            action: store_true
            help: Use reference length instead of effective length when
                  computing TPM and FPKM.
    """ + REPORTING_OPTS

    def outfile_path(self, suffix):
        basename = '%s-%s' % (self.exp_tag, suffix)
        return os.path.join(self.outdir, basename)


def run_info_comments(opts, library):
    """Comment block written above the quantification table."""
    _libfmt = library.library_format
    info = [
        ('version', opts.version),
        ('checkpoint', os.path.basename(opts.checkpoint)),
        ('libtype', str(_libfmt) if _libfmt is not None else 'NA'),
        ('num_transcripts', len(library.transcripts())),
        ('num_clusters', len(library.clusters())),
        ('num_mapped_reads', library.num_mapped_reads()),
        ('effective_length_correction', not opts.no_effective_length_correction),
    ]
    return ['## RunInfo'] + ['# {}:{}'.format(*tup) for tup in info]


def run(args):
    opts = QuantOptions(args)
    console = configure_logging(opts)
    lg.info('\n{}\n'.format(opts))
    stopwatch = Stopwatch()

    console.banner(opts.version)
    console.section('Input')
    console.item('Checkpoint', os.path.basename(opts.checkpoint))

    stopwatch.start('Load')
    library = AlignmentLibrary.load(opts.checkpoint)
    lg.info('Loaded {} transcripts in {} clusters'.format(
        len(library.transcripts()), len(library.clusters())))
    console.item('Transcripts', '{:,}'.format(len(library.transcripts())))
    console.item('Clusters', '{:,}'.format(len(library.clusters())))
    console.item('Mapped reads', '{:,}'.format(library.num_mapped_reads()))
    if library.library_format is not None:
        console.item('Library', str(library.library_format))
    console.blank()

    stopwatch.start('Quantify')
    outfile = opts.outfile_path('quant.sf')
    df = write_abundances(
        library,
        outfile,
        header_comments=run_info_comments(opts, library),
        no_effective_length_correction=opts.no_effective_length_correction,
    )
    stopwatch.stop()

    console.status('Quantified {:,} transcripts ({:,.1f} reads)'.format(len(df), df['NumReads'].sum()))
    console.section('Output')
    console.output_file(outfile)
    console.blank()
    console.timing_table(stopwatch)
    lg.info('fragquant quant complete ({:.1f}s)'.format(stopwatch.total))
    return 0
