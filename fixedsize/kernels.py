"""Kernel families used to build the prototype Gram matrix (numpy/scipy core).

Each kernel exposes:
  hyperparameter_names        frozenset of the config keys it reads
  set_hyperparameters(h)      pick its own keys out of a configuration, returns self
  evaluate(x, y)              scalar kernel value for two vectors
  gram(X, Y)                  (n, m) matrix of pairwise values (vectorized)
  build_kernel_matrix(P)      symmetric (M, M) matrix over prototypes

Families: RBF, Polynomial, Exponential, Laplacian, Cauchy, RationalQuadratic, Wave.
Unknown family names raise UnknownKernelError.
"""
from __future__ import annotations
from enum import Enum
import numpy as np
from scipy.spatial.distance import cdist


class UnknownKernelError(ValueError):
    """Raised when a kernel family name is not one of KernelFamily."""


def _as_2d(X):
    X = np.asarray(X, dtype=float)
    return X[None, :] if X.ndim == 1 else X


class Kernel:
    family = None
    defaults = {}

    def __init__(self, **hyperparameters):
        self._hyper = dict(self.defaults)
        self.set_hyperparameters(hyperparameters)

    @property
    def hyperparameter_names(self):
        return frozenset(self.defaults)

    @property
    def hyperparameters(self):
        return dict(self._hyper)

    def set_hyperparameters(self, h):
        for name in self.hyperparameter_names:
            if name in h:
                self._hyper[name] = float(h[name])
        return self

    def evaluate(self, x, y) -> float:
        return float(self.gram(_as_2d(x), _as_2d(y))[0, 0])

    def gram(self, X, Y):
        raise NotImplementedError

    def build_kernel_matrix(self, prototypes):
        P = _as_2d(prototypes)
        K = self.gram(P, P)
        # symmetrize away round-off so eigh sees an exactly symmetric matrix
        return 0.5 * (K + K.T)

    def __repr__(self):
        params = ", ".join(f"{k}={v:g}" for k, v in sorted(self._hyper.items()))
        return f"{type(self).__name__}({params})"


class _DistanceKernel(Kernel):
    metric = 'euclidean'

    def gram(self, X, Y):
        d = cdist(_as_2d(X), _as_2d(Y), metric=self.metric)
        return self._profile(d)

    def _profile(self, d):
        raise NotImplementedError


class RBFKernel(_DistanceKernel):
    """exp(-|x-y|^2 / (2 bandwidth^2))"""
    family = 'RBF'
    defaults = {'bandwidth': 1.0}
    metric = 'sqeuclidean'

    def _profile(self, d):
        s = self._hyper['bandwidth']
        return np.exp(-d / (2.0 * s * s))


class PolynomialKernel(Kernel):
    """(x.y + offset)^degree, degree truncated to an integer >= 1"""
    family = 'Polynomial'
    defaults = {'degree': 2.0, 'offset': 1.0}

    @property
    def degree(self) -> int:
        return max(1, int(self._hyper['degree']))

    def gram(self, X, Y):
        return (_as_2d(X) @ _as_2d(Y).T + self._hyper['offset']) ** self.degree


class ExponentialKernel(_DistanceKernel):
    """exp(-|x-y| / (2 beta^2))"""
    family = 'Exponential'
    defaults = {'beta': 1.0}

    def _profile(self, d):
        b = self._hyper['beta']
        return np.exp(-d / (2.0 * b * b))


class LaplacianKernel(_DistanceKernel):
    """exp(-|x-y|_1 / be)"""
    family = 'Laplacian'
    defaults = {'be': 1.0}
    metric = 'cityblock'

    def _profile(self, d):
        return np.exp(-d / self._hyper['be'])


class CauchyKernel(_DistanceKernel):
    """1 / (1 + |x-y|^2 / sigma^2)"""
    family = 'Cauchy'
    defaults = {'sigma': 1.0}
    metric = 'sqeuclidean'

    def _profile(self, d):
        s = self._hyper['sigma']
        return 1.0 / (1.0 + d / (s * s))


class RationalQuadraticKernel(_DistanceKernel):
    """1 - |x-y|^2 / (|x-y|^2 + c)"""
    family = 'RationalQuadratic'
    defaults = {'c': 1.0}
    metric = 'sqeuclidean'

    def _profile(self, d):
        return 1.0 - d / (d + self._hyper['c'])


class WaveKernel(_DistanceKernel):
    """(theta/|x-y|) sin(|x-y|/theta), 1 on the diagonal"""
    family = 'Wave'
    defaults = {'theta': 1.0}

    def _profile(self, d):
        theta = self._hyper['theta']
        out = np.ones_like(d)
        nz = d > 0
        out[nz] = theta / d[nz] * np.sin(d[nz] / theta)
        return out


class KernelFamily(Enum):
    RBF = 'RBF'
    POLYNOMIAL = 'Polynomial'
    EXPONENTIAL = 'Exponential'
    LAPLACIAN = 'Laplacian'
    CAUCHY = 'Cauchy'
    RATIONAL_QUADRATIC = 'RationalQuadratic'
    WAVE = 'Wave'

    @classmethod
    def parse(cls, name: str) -> 'KernelFamily':
        try:
            return cls(name)
        except ValueError:
            valid = ", ".join(f.value for f in cls)
            raise UnknownKernelError(f"Unknown kernel family: {name!r} (expected one of {valid})") from None

    @property
    def kernel_class(self):
        return _KERNEL_CLASSES[self]

    @property
    def hyperparameter_names(self):
        return frozenset(self.kernel_class.defaults)


_KERNEL_CLASSES = {
    KernelFamily.RBF: RBFKernel,
    KernelFamily.POLYNOMIAL: PolynomialKernel,
    KernelFamily.EXPONENTIAL: ExponentialKernel,
    KernelFamily.LAPLACIAN: LaplacianKernel,
    KernelFamily.CAUCHY: CauchyKernel,
    KernelFamily.RATIONAL_QUADRATIC: RationalQuadraticKernel,
    KernelFamily.WAVE: WaveKernel,
}


def kernel_from_name(name: str, hyperparameters=None) -> Kernel:
    kernel = KernelFamily.parse(name).kernel_class()
    if hyperparameters:
        kernel.set_hyperparameters(hyperparameters)
    return kernel


__all__ = [
    'UnknownKernelError', 'Kernel', 'KernelFamily', 'kernel_from_name',
    'RBFKernel', 'PolynomialKernel', 'ExponentialKernel', 'LaplacianKernel',
    'CauchyKernel', 'RationalQuadraticKernel', 'WaveKernel'
]
