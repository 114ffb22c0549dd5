# -*- coding: utf-8 -*-

# This file is part of Fragquant.
# Original Telescope code by Matthew L. Bendall (https://github.com/mlbendall/telescope)
#
# New code and modifications by Duane Storey (https://github.com/duanestorey) and Claude (Anthropic).
# Licensed under MIT License.

__version__ = '1.0.0'
