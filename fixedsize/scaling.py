"""Column statistics, Gaussian scaling and the labeled dataset container."""
from __future__ import annotations
import logging
import numpy as np

logger = logging.getLogger(__name__)


def _clamp_variance(variance):
    variance = np.asarray(variance, dtype=float)
    zero = ~(variance > 0)
    if np.any(zero):
        logger.warning("Zero variance in %d column(s); using unit scale there", int(zero.sum()))
        variance = np.where(zero, 1.0, variance)
    return variance


class GaussianScaler:
    """Scale each dimension with its sample mean and variance.

    transform(x)          = (x - mean) / sqrt(variance)
    inverse_transform(z)  = z * sqrt(variance) + mean
    Dimensions are treated independently (no covariance).
    """

    def __init__(self, mean, variance):
        self.mean = np.asarray(mean, dtype=float)
        self.variance = _clamp_variance(variance)
        self.sigma = np.sqrt(self.variance)

    @classmethod
    def fit(cls, X):
        X = np.asarray(X, dtype=float)
        if X.shape[0] < 2:
            raise ValueError("GaussianScaler needs at least two rows")
        return cls(X.mean(axis=0), X.var(axis=0, ddof=1))

    def transform(self, X):
        return (np.asarray(X, dtype=float) - self.mean) / self.sigma

    def inverse_transform(self, Z):
        return np.asarray(Z, dtype=float) * self.sigma + self.mean


class LabeledDataset:
    """In-memory training set of (identifier, feature vector, label) triples."""

    def __init__(self, features, labels, ids=None):
        X = np.asarray(features, dtype=float)
        if X.ndim == 1:
            X = X[:, None]
        y = np.asarray(labels, dtype=float).ravel()
        if X.shape[0] == 0:
            raise ValueError("dataset must contain at least one point")
        if X.shape[0] != y.shape[0]:
            raise ValueError(f"features/labels length mismatch: {X.shape[0]} vs {y.shape[0]}")
        self.X = X
        self.y = y
        self.ids = np.arange(X.shape[0]) if ids is None else np.asarray(ids)
        self.mean = X.mean(axis=0)
        self.variance = X.var(axis=0, ddof=1) if X.shape[0] > 1 else np.zeros(X.shape[1])

    def __iter__(self):
        for i, x, label in zip(self.ids, self.X, self.y):
            yield i, x, label

    def __len__(self):
        return self.X.shape[0]

    @property
    def count(self) -> int:
        return self.X.shape[0]

    @property
    def dim(self) -> int:
        return self.X.shape[1]

    def scaler(self) -> GaussianScaler:
        return GaussianScaler(self.mean, self.variance)


__all__ = ["GaussianScaler", "LabeledDataset"]
