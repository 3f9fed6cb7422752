# Nystrom low-rank approximation of the kernel matrix over a prototype set.
# The retained eigenpairs map any scaled input into a finite primal feature space.
from __future__ import annotations
import logging
import numpy as np
from scipy.linalg import eigh

from .kernels import Kernel

logger = logging.getLogger(__name__)


def girolami_criterion(u, M: int) -> bool:
    """Keep an eigenvector when (|u|_1)^2 >= 2M / (1 + M)."""
    return float(np.sum(np.abs(u))) ** 2 >= 2.0 * M / (1.0 + M)


class IdentityFeatureMap:
    """Scaled input passed through untouched, plus the bias feature."""

    def __init__(self, input_dim: int):
        self.input_dim = input_dim
        self.output_dim = input_dim + 1

    def transform(self, Z):
        Z = np.atleast_2d(np.asarray(Z, dtype=float))
        return np.hstack([Z, np.ones((Z.shape[0], 1))])


class NystromFeatureMap:
    """phi(z) = [ (k(z, P) @ U) / sqrt(lambda), 1.0 ]

    P: scaled prototypes (M, d); U: retained eigenvectors (M, r); lambda: (r,)
    """

    def __init__(self, kernel: Kernel, prototypes, eigenvalues, eigenvectors):
        self.kernel = kernel
        self.prototypes = np.asarray(prototypes, dtype=float)
        self.eigenvalues = np.asarray(eigenvalues, dtype=float)
        self.eigenvectors = np.asarray(eigenvectors, dtype=float)
        self.n_components = self.eigenvalues.shape[0]
        self.output_dim = self.n_components + 1

    def transform(self, Z):
        Z = np.atleast_2d(np.asarray(Z, dtype=float))
        K = self.kernel.gram(Z, self.prototypes)
        features = (K @ self.eigenvectors) / np.sqrt(self.eigenvalues)
        return np.hstack([features, np.ones((Z.shape[0], 1))])


def build_feature_map(scaled_prototypes, kernel: Kernel, eig_tol: float = 1e-12) -> NystromFeatureMap:
    """Gram matrix -> eigendecomposition -> Girolami pruning -> feature map.

    Eigenpairs are visited in descending eigenvalue order and must pass the
    Girolami test to be kept. On top of that, pairs with eigenvalue
    <= eig_tol * lambda_max are dropped even when they pass Girolami, since
    the feature map divides by sqrt(eigenvalue). Survivors keep their order.
    """
    P = np.atleast_2d(np.asarray(scaled_prototypes, dtype=float))
    M = P.shape[0]
    K = kernel.build_kernel_matrix(P)
    eigenvals, eigenvecs = eigh(K)
    idx = np.argsort(eigenvals)[::-1]
    eigenvals, eigenvecs = eigenvals[idx], eigenvecs[:, idx]

    floor = eig_tol * max(float(eigenvals[0]), 0.0) if M else 0.0
    keep = [p for p in range(M)
            if girolami_criterion(eigenvecs[:, p], M) and eigenvals[p] > floor]
    logger.info("Selected Components: %d of %d", len(keep), M)
    if not keep:
        logger.warning("No eigenpair passed the Girolami criterion; feature map reduces to the bias term")
    return NystromFeatureMap(kernel, P, eigenvals[keep], eigenvecs[:, keep])


__all__ = ["girolami_criterion", "IdentityFeatureMap", "NystromFeatureMap", "build_feature_map"]
