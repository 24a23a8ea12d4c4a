# ebunfold/basis/__init__.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""
Function bases for continuous unfolding.

Public API
----------
Basis : class
    Abstract basis. Discretizes kernels and builds omega matrices.
LegendreBasis, FourierBasis : class
    Concrete bases on an interval [a, b].
discretize_kernel : function
    Kernel matrix of a kernel function in a basis.
"""
from .base import Basis, discretize_kernel
from .legendre import LegendreBasis
from .fourier import FourierBasis

__all__ = ["Basis", "LegendreBasis", "FourierBasis", "discretize_kernel"]
