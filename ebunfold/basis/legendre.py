# ebunfold/basis/legendre.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Legendre polynomial basis."""
from numpy.polynomial import legendre

import ebunfold.num as enp
from .base import Basis


class LegendreBasis(Basis):
    """Legendre polynomials P_0, ..., P_{n-1} mapped to [a, b].

    f_j(x) = P_j(t) with t = (2x - a - b) / (b - a).

    The omega matrix of order p has rank n - p: the polynomials of degree
    lower than p have a zero p-th derivative.
    """

    def design(self, x, order=0):
        x = enp.asdouble(x).reshape(-1)
        scale = 2.0 / (self.b - self.a)
        t = scale * (x - self.a) - 1.0
        D = enp.zeros((x.shape[0], self.n))
        for j in range(self.n):
            c = enp.zeros(j + 1)
            c[j] = 1.0
            if order > 0:
                c = legendre.legder(c, order)
            D[:, j] = legendre.legval(t, c) * scale**order
        return D
