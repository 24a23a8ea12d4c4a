# ebunfold/plot/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
ebunfold plotting utilities.
"""

from .plotutils import plot_chains, plot_marginal_likelihood_scan, plot_unfolded

__all__ = ["plot_chains", "plot_marginal_likelihood_scan", "plot_unfolded"]
