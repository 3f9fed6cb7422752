import numpy as np


def generate_spiral_regression(N=400, noise_level=0.1, random_state=42):
    """Nonlinear regression set (6D input, scalar target).

    Inputs mix spiral / radial components with polynomial and exponential
    transforms; the target depends on radius, angle and their interaction.
    """
    rng = np.random.RandomState(random_state)

    t = rng.uniform(0, 4 * np.pi, N)
    r = rng.uniform(0.5, 2.0, N)
    z = rng.uniform(-1, 1, N)

    X = np.zeros((N, 6))
    X[:, 0] = r * np.cos(t) + rng.normal(0, noise_level, N)
    X[:, 1] = r * np.sin(t) + rng.normal(0, noise_level, N)
    X[:, 2] = 0.5 * t + rng.normal(0, noise_level, N)
    X[:, 3] = r ** 2 * np.cos(2 * t) + rng.normal(0, noise_level, N)
    X[:, 4] = np.exp(-0.5 * r) * np.cos(3 * t) + rng.normal(0, noise_level, N)
    X[:, 5] = z * np.tanh(r * np.sin(t)) + rng.normal(0, noise_level, N)

    y = (np.sqrt(X[:, 0] ** 2 + X[:, 1] ** 2) + 0.5 * np.sin(X[:, 2])
         + np.sin(X[:, 0] + X[:, 1]) * np.exp(-0.1 * X[:, 3] ** 2)
         + rng.normal(0, noise_level, N))

    return X, y
