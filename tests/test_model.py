import numpy as np
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from data_gens import get_generator
from fixedsize import FixedSizeModel, LabeledDataset, UnknownKernelError
from fixedsize.kernels import LaplacianKernel, RBFKernel


class RecordingValidator:
    def __init__(self, score=0.8):
        self.score = score
        self.calls = []
        self.shapes = []

    def set_data(self, features, labels):
        self.shapes.append(features.shape)

    def crossvalidate(self, folds, reg_param, reuse_cache):
        self.calls.append((folds, reg_param, reuse_cache))
        return 0.9, self.score, self.score


def _xor_model(n=120, **kwargs):
    X, y = get_generator('xor')(n_samples=n, random_state=0)
    return FixedSizeModel(LabeledDataset(X, y), task='classification', random_state=0, **kwargs)


def test_energy_is_one_minus_score_and_flag_sense():
    cv = RecordingValidator(score=0.8)
    model = _xor_model(cross_validator=cv)
    cfg = {'RegParam': 0.5, 'bandwidth': 2.0}
    assert model.energy(cfg, {'kernel': 'RBF'}) == pytest.approx(0.2)
    assert model.energy(cfg, {'kernel': 'RBF'}) == pytest.approx(0.2)
    assert model.energy({'RegParam': 0.1, 'bandwidth': 3.0}, {'kernel': 'RBF'}) == pytest.approx(0.2)
    assert cv.calls == [(4, 0.5, False), (4, 0.5, True), (4, 0.1, False)]
    assert model.current_state == {'RegParam': 0.1, 'bandwidth': 3.0}


def test_identical_configuration_hits_cache():
    model = _xor_model()
    cfg = {'RegParam': 1.0, 'bandwidth': 2.0}
    e1 = model.energy(cfg, {'kernel': 'RBF'})
    version = model.kernel_version
    fmap = model.feature_map
    e2 = model.energy(dict(cfg), {'kernel': 'RBF'})
    assert model.kernel_version == version == 1
    assert model.feature_map is fmap
    assert e1 == e2
    assert model.cross_validator.cache_hits == 1
    assert 0.0 <= e1 <= 1.0


def test_regparam_change_keeps_kernel():
    model = _xor_model()
    model.energy({'RegParam': 1.0, 'bandwidth': 2.0}, {'kernel': 'RBF'})
    model.energy({'RegParam': 0.01, 'bandwidth': 2.0}, {'kernel': 'RBF'})
    assert model.kernel_version == 1
    model.energy({'RegParam': 0.01, 'bandwidth': 2.5}, {'kernel': 'RBF'})
    assert model.kernel_version == 2


def test_default_and_explicit_subset_size():
    model = _xor_model(n=100)
    model.energy({'RegParam': 1.0, 'bandwidth': 2.0}, {'kernel': 'RBF'})
    assert model.prototype_idx.shape[0] == 10
    model.energy({'RegParam': 1.0, 'bandwidth': 1.0}, {'kernel': 'RBF', 'subset': '16'})
    assert model.prototype_idx.shape[0] == 16
    assert model.processed.shape == (100, model.effective_dims)


def test_params_follow_feature_dimension():
    model = _xor_model()
    assert model.params.shape[0] == model.dataset.dim + 1
    model.energy({'RegParam': 1.0, 'bandwidth': 2.0}, {'kernel': 'RBF'})
    assert model.params.shape[0] == model.effective_dims
    model.learn()
    learned = model.params.copy()
    old_dim = model.effective_dims
    model.apply_kernel(LaplacianKernel(be=0.3), 10)
    if model.effective_dims != old_dim:
        assert np.all(model.params == 1.0)
    else:
        assert np.array_equal(model.params, learned)


def test_unknown_kernel_and_missing_regparam():
    model = _xor_model()
    with pytest.raises(UnknownKernelError):
        model.energy({'RegParam': 1.0}, {'kernel': 'Sigmoid'})
    with pytest.raises(ValueError):
        model.energy({'bandwidth': 1.0}, {'kernel': 'RBF'})


def test_energy_without_kernel_uses_identity_map():
    model = _xor_model()
    e = model.energy({'RegParam': 1.0}, {})
    assert model.kernel_version == 0
    assert model.effective_dims == model.dataset.dim + 1
    assert 0.0 <= e <= 1.0


def test_learn_and_predict_regression():
    X, y = get_generator('spiral')(n_samples=150, random_state=1)
    model = FixedSizeModel(LabeledDataset(X, y), task='regression', folds=3, random_state=1)
    e = model.energy({'RegParam': 0.1, 'sigma': 2.0}, {'kernel': 'Cauchy'})
    assert 0.0 <= e <= 1.0
    model.learn()
    pred = model.predict(X[:5])
    assert pred.shape == (5,)
    assert np.all(np.isfinite(pred))


def test_external_apply_kernel_forces_rebuild_on_next_energy():
    cv = RecordingValidator(score=0.7)
    model = _xor_model(cross_validator=cv)
    cfg = {'RegParam': 0.5, 'bandwidth': 2.0}
    model.energy(cfg, {'kernel': 'RBF'})
    model.apply_kernel(LaplacianKernel(be=0.3), 10)
    assert isinstance(model.feature_map.kernel, LaplacianKernel)
    model.energy(cfg, {'kernel': 'RBF'})
    assert isinstance(model.feature_map.kernel, RBFKernel)
    assert model.feature_map.kernel.hyperparameters == {'bandwidth': 2.0}
    assert model.kernel_version == 3
    assert cv.calls == [(4, 0.5, False), (4, 0.5, False)]
