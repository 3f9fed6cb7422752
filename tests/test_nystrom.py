import numpy as np
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from fixedsize.kernels import RBFKernel, PolynomialKernel
from fixedsize.nystrom import girolami_criterion, build_feature_map, IdentityFeatureMap
from fixedsize.scaling import GaussianScaler, LabeledDataset


def test_girolami_rejects_single_coordinate_vector():
    M = 10
    u = np.zeros(M)
    u[3] = 1.0
    assert not girolami_criterion(u, M)


def test_girolami_keeps_flat_vector():
    M = 10
    u = np.ones(M) / np.sqrt(M)  # l1 norm sqrt(M)
    assert np.sum(np.abs(u)) == pytest.approx(np.sqrt(M))
    assert girolami_criterion(u, M)


def test_feature_map_dimension_and_bias():
    rng = np.random.RandomState(0)
    P = rng.randn(12, 3)
    fmap = build_feature_map(P, RBFKernel(bandwidth=1.5))
    Z = rng.randn(7, 3)
    F = fmap.transform(Z)
    assert fmap.output_dim == fmap.n_components + 1
    assert F.shape == (7, fmap.output_dim)
    assert np.allclose(F[:, -1], 1.0)


def test_retained_components_pass_criterion_in_descending_order():
    rng = np.random.RandomState(1)
    P = rng.randn(15, 2)
    fmap = build_feature_map(P, RBFKernel(bandwidth=1.0))
    M = P.shape[0]
    assert np.all(np.diff(fmap.eigenvalues) <= 0)
    assert np.all(fmap.eigenvalues > 0)
    for p in range(fmap.n_components):
        assert girolami_criterion(fmap.eigenvectors[:, p], M)


def test_prototype_features_reproduce_retained_kernel_part():
    rng = np.random.RandomState(2)
    P = rng.randn(10, 2)
    kern = RBFKernel(bandwidth=2.0)
    fmap = build_feature_map(P, kern)
    F = fmap.transform(P)[:, :-1]
    U, lam = fmap.eigenvectors, fmap.eigenvalues
    assert np.allclose(F @ F.T, (U * lam) @ U.T, atol=1e-8)


def test_identity_feature_map():
    fmap = IdentityFeatureMap(3)
    F = fmap.transform(np.zeros((4, 3)))
    assert F.shape == (4, 4)
    assert fmap.output_dim == 4
    assert np.allclose(F[:, -1], 1.0)


def test_scaling_round_trip():
    rng = np.random.RandomState(3)
    X = rng.randn(50, 4) * np.array([1.0, 10.0, 0.1, 3.0]) + 5.0
    scaler = GaussianScaler.fit(X)
    Z = scaler.transform(X)
    assert np.allclose(Z.mean(axis=0), 0.0, atol=1e-9)
    assert np.allclose(Z.std(axis=0, ddof=1), 1.0)
    assert np.max(np.abs(scaler.inverse_transform(Z) - X)) < 1e-9


def test_zero_variance_column_is_clamped():
    X = np.column_stack([np.arange(5.0), np.full(5, 2.0)])
    scaler = GaussianScaler.fit(X)
    Z = scaler.transform(X)
    assert np.all(np.isfinite(Z))
    assert np.allclose(Z[:, 1], 0.0)


def test_labeled_dataset_statistics_and_iteration():
    X = np.array([[1.0, 2.0], [3.0, 4.0], [5.0, 9.0]])
    y = np.array([1.0, -1.0, 1.0])
    data = LabeledDataset(X, y)
    assert data.count == 3
    assert np.allclose(data.mean, [3.0, 5.0])
    assert np.allclose(data.variance, X.var(axis=0, ddof=1))
    triples = list(data)
    assert [int(t[0]) for t in triples] == [0, 1, 2]
    assert np.array_equal(triples[2][1], X[2])
    with pytest.raises(ValueError):
        LabeledDataset(np.empty((0, 2)), np.empty(0))


def test_polynomial_feature_map_is_finite():
    rng = np.random.RandomState(4)
    P = rng.randn(8, 2)
    fmap = build_feature_map(P, PolynomialKernel(degree=2, offset=1.0))
    assert np.all(np.isfinite(fmap.transform(P)))


def test_numerically_null_eigenpairs_are_dropped():
    # linear kernel on 2-D points: rank 2 Gram matrix over 6 prototypes
    rng = np.random.RandomState(7)
    P = rng.randn(6, 2)
    fmap = build_feature_map(P, PolynomialKernel(degree=1, offset=0.0))
    assert fmap.n_components <= 2
    lam_max = np.linalg.eigvalsh(PolynomialKernel(degree=1, offset=0.0).build_kernel_matrix(P)).max()
    assert np.all(fmap.eigenvalues > 1e-12 * lam_max)
    assert np.all(np.isfinite(fmap.transform(P)))
