import numpy as np
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from fixedsize.kernels import (KernelFamily, UnknownKernelError, kernel_from_name,
                               RBFKernel, PolynomialKernel, WaveKernel)


def test_every_family_gram_matches_evaluate():
    rng = np.random.RandomState(0)
    X = rng.randn(5, 3)
    Y = rng.randn(4, 3)
    for family in KernelFamily:
        kern = kernel_from_name(family.value)
        G = kern.gram(X, Y)
        assert G.shape == (5, 4)
        for i in range(5):
            for j in range(4):
                assert kern.evaluate(X[i], Y[j]) == pytest.approx(G[i, j])


def test_kernel_matrix_is_symmetric():
    rng = np.random.RandomState(1)
    P = rng.randn(6, 2)
    for family in KernelFamily:
        K = kernel_from_name(family.value).build_kernel_matrix(P)
        assert K.shape == (6, 6)
        assert np.array_equal(K, K.T)


def test_rbf_values():
    kern = RBFKernel(bandwidth=2.0)
    x = np.array([1.0, 0.0])
    y = np.array([0.0, 0.0])
    assert kern.evaluate(x, x) == pytest.approx(1.0)
    assert kern.evaluate(x, y) == pytest.approx(np.exp(-1.0 / 8.0))


def test_set_hyperparameters_reads_only_own_keys():
    kern = RBFKernel().set_hyperparameters({'bandwidth': 3.0, 'RegParam': 10.0})
    assert kern.hyperparameters == {'bandwidth': 3.0}
    assert kern.hyperparameter_names == frozenset({'bandwidth'})


def test_polynomial_degree_truncated():
    kern = PolynomialKernel(degree=2.7, offset=1.0)
    assert kern.degree == 2
    x = np.array([1.0, 2.0])
    assert kern.evaluate(x, x) == pytest.approx((5.0 + 1.0) ** 2)
    assert PolynomialKernel(degree=0.2).degree == 1


def test_wave_is_one_on_diagonal():
    P = np.array([[0.0], [1.0], [3.0]])
    K = WaveKernel(theta=0.5).build_kernel_matrix(P)
    assert np.allclose(np.diag(K), 1.0)
    assert K[0, 1] == pytest.approx(0.5 * np.sin(2.0))


def test_family_schema():
    assert KernelFamily.POLYNOMIAL.hyperparameter_names == frozenset({'degree', 'offset'})
    assert KernelFamily.parse('Laplacian') is KernelFamily.LAPLACIAN


def test_unknown_kernel_name():
    with pytest.raises(UnknownKernelError):
        kernel_from_name('Sigmoid')
    with pytest.raises(ValueError):
        KernelFamily.parse('rbf')
