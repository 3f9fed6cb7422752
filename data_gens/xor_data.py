import numpy as np


def generate_xor_data(n_samples=400, n_pairs=2, n_decoy=2, noise_level=0.1, random_state=42):
    """Binary XOR classification set with labels in {-1, +1}.

    - label: parity of the sign pattern over `n_pairs` input pairs
    - noise: Gaussian jitter on the informative columns
    - decoy: extra unit-variance columns carrying no signal
    A linear model is near chance here; a kernel model is not.
    """
    rng = np.random.RandomState(random_state)

    X = rng.normal(0, 1, (n_samples, n_pairs * 2))
    flips = (X[:, 0::2] > 0) ^ (X[:, 1::2] > 0)
    parity = np.sum(flips, axis=1) % 2
    y = np.where(parity == 1, 1.0, -1.0)

    X = X + rng.normal(0, noise_level, X.shape)
    if n_decoy > 0:
        X = np.hstack([X, rng.normal(0, 1.0, (n_samples, n_decoy))])

    return X, y
