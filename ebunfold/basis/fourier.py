# ebunfold/basis/fourier.py
# --------------------------------------------------------------
# Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
# Copyright (c) 2022-2026, CentraleSupelec
# License: GPLv3 (see LICENSE)
# --------------------------------------------------------------
"""Trigonometric basis."""
import ebunfold.num as enp
from .base import Basis


class FourierBasis(Basis):
    """Trigonometric functions on [a, b].

    f_0(x) = 1, then f_{2k-1}(x) = cos(w_k (x - a)) and
    f_{2k}(x) = sin(w_k (x - a)) with w_k = 2 pi k / (b - a).
    """

    def frequencies(self):
        k = (enp.arange(self.n) + 1) // 2
        return 2.0 * enp.pi * k / (self.b - self.a)

    def design(self, x, order=0):
        x = enp.asdouble(x).reshape(-1)
        w = self.frequencies()
        # d^p/dx^p cos(u) = cos(u + p pi / 2), same for sin
        phase = enp.where(enp.arange(self.n) % 2 == 0, -0.5 * enp.pi, 0.0)
        u = enp.outer(x - self.a, w) + phase + 0.5 * enp.pi * order
        D = enp.cos(u) * w**order
        if order == 0:
            D[:, 0] = 1.0
        else:
            D[:, 0] = 0.0
        return D
