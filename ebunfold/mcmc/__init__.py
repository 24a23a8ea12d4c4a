# ebunfold/mcmc/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Markov chain Monte Carlo (MCMC) unfolding for ebunfold.

Public API
----------
MHOptions, MetropolisHastings
    Metropolis-Hastings configuration and sampler.
SamplingEngine, MetropolisHastingsEngine, SamplingOutput
    Engine interface, its default implementation and its output.
PhiBounds, log_bounds_correction
    Initial state and box constraints of the coefficients.
SamplingUnfolder, gaussian_log_likelihood
    Posterior sampling of the coefficients.
"""
from __future__ import annotations

import importlib

__all__ = [
    "MHOptions",
    "MetropolisHastings",
    "SamplingEngine",
    "MetropolisHastingsEngine",
    "SamplingOutput",
    "PhiBounds",
    "log_bounds_correction",
    "SamplingUnfolder",
    "gaussian_log_likelihood",
]

_EXPORT_TO_MODULE = {
    # Metropolis-Hastings
    "MHOptions": "mh",
    "MetropolisHastings": "mh",
    # Sampling unfolder
    "SamplingEngine": "sampling",
    "MetropolisHastingsEngine": "sampling",
    "SamplingOutput": "sampling",
    "PhiBounds": "sampling",
    "log_bounds_correction": "sampling",
    "SamplingUnfolder": "sampling",
    "gaussian_log_likelihood": "sampling",
}


def __getattr__(name: str):
    module_name = _EXPORT_TO_MODULE.get(name)
    if module_name is None:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = importlib.import_module(f"{__name__}.{module_name}")
    obj = getattr(module, name)
    globals()[name] = obj
    return obj


def __dir__():
    return sorted(set(globals().keys()) | set(__all__))
