"""
Unfold a smeared histogram with Empirical-Bayes weight selection

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import ebunfold.num as enp
import ebunfold as eb
import matplotlib.pyplot as plt


def generate_data(n=30, noise_std=0.02):
    """
    Data generation.

    Returns
    -------
    tuple
        (x, phi_true): bin centers and true spectrum
        (K, d, errors): smearing matrix, data and data variances
    """
    enp.set_seed(0)
    x = enp.linspace(0.0, 1.0, n)
    phi_true = enp.exp(-((x - 0.3) ** 2) / 0.01) + 0.5 * enp.exp(-((x - 0.7) ** 2) / 0.005)
    K = enp.exp(-((x[:, None] - x[None, :]) ** 2) / 0.005)
    K = K / enp.sum(K, axis=0)[None, :]
    d = K @ phi_true + noise_std * enp.randn(n)
    errors = noise_std**2 * enp.ones(n)
    return x, phi_true, K, d, errors


def main():
    x, phi_true, K, d, errors = generate_data()
    n = x.shape[0]

    unfolder = eb.core.MatrixUnfolder([eb.core.difference_omega(n, 2)])
    result = unfolder.solve(K, d, errors)
    print(f"alphas: {result.alphas}, converged: {result.converged}")

    B, b = unfolder.normal_equations(K, d, errors)
    scan = eb.core.marginal_likelihood_scan(B, b, unfolder.omegas, t_min=-10.0, t_max=5.0, num=200)

    fig, axes = plt.subplots(1, 2, figsize=(12, 4))
    axes[0].plot(x, phi_true, "k--", label="truth")
    axes[0].plot(x, d, ".", label="data")
    axes[0].errorbar(x, result.coeff, yerr=result.errors(), label="unfolded")
    axes[0].legend(loc="best")
    eb.plot.plot_marginal_likelihood_scan(scan, ax=axes[1])
    plt.show()


if __name__ == "__main__":
    main()
