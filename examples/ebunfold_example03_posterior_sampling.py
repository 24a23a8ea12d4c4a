"""
Sample the posterior of non-negative unfolded coefficients

Author: Emmanuel Vazquez <emmanuel.vazquez@centralesupelec.fr>
Copyright (c) 2022-2026, CentraleSupelec
License: GPLv3 (see LICENSE)
"""

import ebunfold.num as enp
import ebunfold as eb
import matplotlib.pyplot as plt
from ebunfold.mcmc import MetropolisHastingsEngine, PhiBounds, SamplingUnfolder


def main():
    n = 6
    enp.set_seed(2)
    x = enp.linspace(0.0, 1.0, n)
    phi_true = enp.exp(-((x - 0.4) ** 2) / 0.05)
    K = enp.exp(-((x[:, None] - x[None, :]) ** 2) / 0.02)
    K = K / enp.sum(K, axis=0)[None, :]
    noise_std = 0.05
    d = K @ phi_true + noise_std * enp.randn(n)
    errors = noise_std**2 * enp.ones(n)

    omegas = [eb.core.difference_omega(n, 0)]
    reference = eb.core.MatrixUnfolder(omegas).solve(K, d, errors)

    bounds = PhiBounds(enp.full((n,), 0.5), lower=enp.zeros(n))
    engine = MetropolisHastingsEngine(seed=0)
    unfolder = SamplingUnfolder(omegas, bounds=bounds, engine=engine)
    result = unfolder.solve(K, d, errors, n_samples=2000, n_chains=2)

    print(f"closed-form mean : {reference.coeff}")
    print(f"sampled mode     : {result.coeff}")
    sampler = result.selection_info.info
    print(f"acceptance rates : {sampler.acceptance_rates()}")

    eb.plot.plot_chains(sampler)
    plt.show()


if __name__ == "__main__":
    main()
