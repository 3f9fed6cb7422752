"""Entropy based prototype selection for the fixed-size kernel approximation.

A subset of M training points is chosen greedily so that the quadratic Renyi
entropy of the subset, measured with a Gaussian Parzen density whose
bandwidth follows Silverman's rule, is as large as possible.
"""
from __future__ import annotations
import logging
import numpy as np
from scipy.spatial.distance import cdist

logger = logging.getLogger(__name__)


def silverman_bandwidth(X):
    """Per-dimension bandwidth 1.06 * sigma_i * n^(-1/5), sigma from the unbiased variance.

    Dimensions with zero variance get sigma = 1.0 so the density stays proper.
    """
    X = np.asarray(X, dtype=float)
    n = X.shape[0]
    if n < 2:
        raise ValueError("Silverman's rule needs at least two points")
    sigma = np.sqrt(X.var(axis=0, ddof=1))
    degenerate = ~(sigma > 0)
    if np.any(degenerate):
        logger.warning("Silverman bandwidth: %d zero-variance dimension(s), clamping sigma to 1.0",
                       int(degenerate.sum()))
        sigma = np.where(degenerate, 1.0, sigma)
    return 1.06 * sigma / n ** 0.2


class GaussianDensity:
    """Product Gaussian Parzen kernel with a per-dimension bandwidth."""

    def __init__(self, bandwidth):
        self.bandwidth = np.atleast_1d(np.asarray(bandwidth, dtype=float))
        self._log_norm = -float(np.sum(np.log(np.sqrt(2.0 * np.pi) * self.bandwidth)))

    def pairwise(self, X, Y):
        Xs = np.asarray(X, dtype=float) / self.bandwidth
        Ys = np.asarray(Y, dtype=float) / self.bandwidth
        return np.exp(self._log_norm - 0.5 * cdist(Xs, Ys, metric='sqeuclidean'))

    def evaluate(self, x, y) -> float:
        return float(self.pairwise(np.atleast_2d(x), np.atleast_2d(y))[0, 0])


class QuadraticRenyiEntropy:
    """H(S) = -log( (1/|S|^2) sum_i sum_j G_{sqrt(2) h}(x_i - x_j) )."""

    def __init__(self, density: GaussianDensity):
        self.density = density
        # convolution of two Gaussians of width h has width sqrt(2) h
        self._conv = GaussianDensity(np.sqrt(2.0) * density.bandwidth)

    def evaluate(self, X) -> float:
        X = np.asarray(X, dtype=float)
        n = X.shape[0]
        information_potential = self._conv.pairwise(X, X).sum() / (n * n)
        return float(-np.log(information_potential))


class GreedyEntropySelector:
    """Random-swap search for a maximum entropy subset."""

    def __init__(self, entropy: QuadraticRenyiEntropy, max_iterations: int = 25,
                 tolerance: float = 1e-5, random_state=None):
        self.entropy = entropy
        self.max_iterations = int(max_iterations)
        self.tolerance = float(tolerance)
        self.rng = np.random.RandomState(random_state)
        self.history = []

    def select(self, X, M: int):
        """Return sorted row indices of the selected subset (at most M of them)."""
        X = np.asarray(X, dtype=float)
        n = X.shape[0]
        if M <= 0:
            raise ValueError(f"prototype count must be positive; got {M}")
        if M >= n:
            return np.arange(n)

        perm = self.rng.permutation(n)
        subset = perm[:M].copy()
        rest = perm[M:].copy()
        current = self.entropy.evaluate(X[subset])
        self.history = [current]
        delta = np.inf
        it = 0
        while it < self.max_iterations and abs(delta) >= self.tolerance:
            i = self.rng.randint(M)
            j = self.rng.randint(rest.shape[0])
            candidate = subset.copy()
            candidate[i] = rest[j]
            proposed = self.entropy.evaluate(X[candidate])
            delta = proposed - current
            if delta > 0:
                rest[j] = subset[i]
                subset = candidate
                current = proposed
                self.history.append(current)
            it += 1
        logger.debug("Entropy selection: %d swaps tried, final entropy %.6f", it, current)
        return np.sort(subset)


def select_prototypes(X, M: int, max_iterations: int = 25, tolerance: float = 1e-5,
                      random_state=None):
    """Silverman bandwidth + greedy quadratic Renyi entropy selection; returns row indices."""
    X = np.asarray(X, dtype=float)
    if 0 < M and M >= X.shape[0]:
        return np.arange(X.shape[0])
    density = GaussianDensity(silverman_bandwidth(X))
    selector = GreedyEntropySelector(QuadraticRenyiEntropy(density), max_iterations,
                                     tolerance, random_state)
    return selector.select(X, M)


__all__ = [
    'silverman_bandwidth', 'GaussianDensity', 'QuadraticRenyiEntropy',
    'GreedyEntropySelector', 'select_prototypes'
]
