# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Transcript abundance estimates (NumReads, TPM, FPKM) and their report.

Functions accept any QuantLibrary, so paired, unpaired and merged read
experiments share the same code.
"""

import logging as lg

import numpy as np
import pandas as pd

from ..utils.logmath import LOG_BILLION, MILLION
from .projection import project_clusters

QUANT_COLUMNS = ['Name', 'Length', 'TPM', 'FPKM', 'NumReads']


def _log_lengths(refs, no_effective_length_correction):
    ref_lengths = np.array([t.ref_length for t in refs], dtype=np.float64)
    with np.errstate(divide='ignore'):
        log_ref = np.log(ref_lengths)
    if no_effective_length_correction:
        return log_ref
    # transcripts without a cached effective length fall back to ref length
    return np.array([
        lr if t.log_effective_length is None else t.log_effective_length
        for t, lr in zip(refs, log_ref)
    ], dtype=np.float64)


def compute_abundances(library, no_effective_length_correction=False):
    """Normalise projected counts to TPM and FPKM.

    Run :func:`project_clusters` first; this only reads ``projected_count``.

    Args:
        library: A QuantLibrary.
        no_effective_length_correction: Use reference length instead of
            effective length.

    Returns:
        DataFrame with columns Name, Length, TPM, FPKM, NumReads, one row per
        transcript in transcript order.
    """
    refs = library.transcripts()
    num_mapped = float(library.num_mapped_reads())
    counts = np.array([t.projected_count for t in refs], dtype=np.float64)
    log_lengths = _log_lengths(refs, no_effective_length_correction)

    with np.errstate(divide='ignore', invalid='ignore', over='ignore'):
        lengths = np.exp(log_lengths)
        valid = np.isfinite(log_lengths) & (lengths > 0)

        # Pass 1: transcript-fraction denominator
        npm = counts / num_mapped if num_mapped > 0 else np.zeros_like(counts)
        rate = np.where(valid, npm / lengths, 0.0)
        tfrac_denom = rate.sum()

        # Pass 2: per-transcript metrics
        if num_mapped > 0:
            fpkm_factor = np.where(valid, np.exp(LOG_BILLION - log_lengths - np.log(num_mapped)), 0.0)
        else:
            fpkm_factor = np.zeros_like(counts)
        fpkm = np.where(counts > 0, fpkm_factor * counts, 0.0)
        if tfrac_denom > 0:
            tpm = (rate / tfrac_denom) * MILLION
        else:
            tpm = np.zeros_like(counts)

    return pd.DataFrame({
        'Name': [t.name for t in refs],
        'Length': [t.ref_length for t in refs],
        'TPM': tpm,
        'FPKM': fpkm,
        'NumReads': counts,
    }, columns=QUANT_COLUMNS)


def write_abundances(library, filename, header_comments=(),
                     no_effective_length_correction=False, logger=None):
    """Project cluster counts and write the quantification table.

    The file starts with the caller's comment lines, followed by the column
    header ``Name Length TPM FPKM NumReads`` and one tab-separated row per
    transcript.

    Args:
        library: A QuantLibrary.
        filename: Output path. Errors opening it are raised to the caller.
        header_comments: Lines (or one string) written before the table.
        no_effective_length_correction: See :func:`compute_abundances`.
        logger: Logger passed through to :func:`project_clusters`.

    Returns:
        The DataFrame that was written.
    """
    logger = logger or lg.getLogger(__name__)
    if isinstance(header_comments, str):
        header_comments = header_comments.splitlines()

    project_clusters(library, logger=logger)
    df = compute_abundances(library, no_effective_length_correction)

    with open(filename, 'w', encoding='utf-8') as outh:
        for line in header_comments:
            outh.write(line.rstrip('\n') + '\n')
        df.to_csv(outh, sep='\t', index=False, lineterminator='\n')

    logger.info('Wrote abundances for {} transcripts to {}'.format(len(df), filename))
    return df
