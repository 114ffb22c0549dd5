# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

"""Pretty stdout output for the fragquant CLI.

Separate from Python logging (which goes to stderr).
"""

import sys
from time import perf_counter


class Stopwatch:
    """Collects named timing segments for a summary table."""

    def __init__(self):
        self._timings = []        # [(name, elapsed)]
        self._start = None
        self._active = None

    def start(self, name):
        """Begin timing a named stage, closing the previous one."""
        now = perf_counter()
        if self._active:
            self._timings.append((self._active[0], now - self._active[1]))
        self._active = (name, now)
        if self._start is None:
            self._start = now

    def stop(self):
        if self._active:
            self._timings.append((self._active[0], perf_counter() - self._active[1]))
            self._active = None

    @property
    def total(self):
        return perf_counter() - self._start if self._start else 0.0

    @property
    def timings(self):
        return list(self._timings)


class Console:
    """Pretty stdout output for the fragquant CLI."""

    QUIET = 0
    NORMAL = 1
    VERBOSE = 2
    DEBUG = 3

    def __init__(self, level=NORMAL, stream=None):
        self.level = level
        self.stream = stream or sys.stdout
        self._use_color = hasattr(self.stream, 'isatty') and self.stream.isatty()

    def banner(self, version):
        if self.level < self.NORMAL:
            return
        self._write('')
        if self._use_color:
            self._write('\033[1mFragquant v{}\033[0m -- Transcript Abundance'.format(version))
        else:
            self._write('Fragquant v{} -- Transcript Abundance'.format(version))
        self._write('')

    def section(self, title):
        if self.level < self.NORMAL:
            return
        self._write('  {}'.format(title))

    def item(self, label, value, indent=4):
        """Print key: value pair."""
        if self.level < self.NORMAL:
            return
        padding = ' ' * indent
        self._write('{}{:<14}{}'.format(padding, label + ':', value))

    def status(self, message):
        if self.level < self.NORMAL:
            return
        self._write('  {}'.format(message))

    def output_file(self, path):
        if self.level < self.NORMAL:
            return
        self._write('    {}'.format(path))

    def blank(self):
        if self.level < self.NORMAL:
            return
        self._write('')

    def timing_table(self, stopwatch):
        """Print timing summary table (verbose only)."""
        if self.level < self.VERBOSE:
            return
        timings = stopwatch.timings
        total = stopwatch.total
        if not timings:
            return

        self.section('Timing')
        for name, elapsed in timings:
            pct = '{:>4.0f}%'.format(elapsed / total * 100) if total > 0 else ''
            self._write('    {:<18}{:>5.1f}s{:>8}'.format(name, elapsed, pct))
        self._write('    ' + '-' * 30)
        self._write('    {:<18}{:>5.1f}s'.format('Total', total))

    def _write(self, text):
        print(text, file=self.stream)
