"""
Unfold a function given through kernel and data functions

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import ebunfold.num as enp
import ebunfold as eb
import matplotlib.pyplot as plt

NOISE_STD = 1e-3


def truth(x):
    return 1.0 + enp.sin(3.0 * x) * x


def kernel(x, y):
    return enp.exp(-((x - y) ** 2) / 0.02) / enp.sqrt(0.02 * enp.pi)


def main():
    basis = eb.basis.LegendreBasis(0.0, 1.0, 10)
    y = enp.linspace(0.0, 1.0, 40)

    # data generated from a finer discretization of the truth
    fine = eb.basis.LegendreBasis(0.0, 1.0, 20)
    coeff_true = enp.pinv(fine.design(y)) @ truth(y)
    enp.set_seed(1)
    data = fine.discretize_kernel(kernel, y) @ coeff_true + NOISE_STD * enp.randn(40)

    unfolder = eb.core.ContinuousUnfolder.from_basis(basis, orders=[2])
    result = unfolder.solve(kernel, data, lambda t: NOISE_STD**2, y)
    print(f"alphas: {result.alphas}, fallback: {result.fallback}")

    x = enp.linspace(0.0, 1.0, 200)
    eb.plot.plot_unfolded(basis, result, x, truth=truth)
    plt.show()


if __name__ == "__main__":
    main()
