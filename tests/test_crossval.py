import numpy as np
import pytest
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(__file__)))
from fixedsize.crossval import PrimalCrossValidator, fit_primal


def _linear_problem(n=80, seed=0):
    rng = np.random.RandomState(seed)
    X = rng.randn(n, 3)
    w = np.array([1.5, -2.0, 0.5])
    Phi = np.hstack([X, np.ones((n, 1))])
    return Phi, X @ w + 0.3


def test_regression_perfect_fit_scores_one():
    Phi, y = _linear_problem()
    cv = PrimalCrossValidator('regression', random_state=0).set_data(Phi, y)
    train, test, score = cv.crossvalidate(4, 0.0, reuse_cache=False)
    assert train == pytest.approx(1.0)
    assert test == pytest.approx(1.0)
    assert score == test


def test_classification_separable():
    Phi, y = _linear_problem(seed=1)
    labels = np.where(y > 0, 1.0, -1.0)
    cv = PrimalCrossValidator('classification').set_data(Phi, labels)
    _, _, score = cv.crossvalidate(4, 1e-3)
    assert 0.8 <= score <= 1.0


def test_fold_cache_reuse():
    Phi, y = _linear_problem()
    cv = PrimalCrossValidator('regression').set_data(Phi, y)
    first = cv.crossvalidate(4, 0.5, reuse_cache=False)
    again = cv.crossvalidate(4, 0.5, reuse_cache=True)
    assert cv.cache_hits == 1
    assert again == first
    cv.crossvalidate(5, 0.5, reuse_cache=True)  # different fold count rebuilds
    assert cv.cache_hits == 1


def test_invalid_arguments():
    Phi, y = _linear_problem()
    cv = PrimalCrossValidator('regression').set_data(Phi, y)
    with pytest.raises(ValueError):
        cv.crossvalidate(1, 0.5)
    with pytest.raises(ValueError):
        cv.crossvalidate(4, -1.0)
    with pytest.raises(ValueError):
        PrimalCrossValidator('ranking')


def test_fit_primal_matches_least_squares():
    Phi, y = _linear_problem()
    w = fit_primal(Phi, y, 0.0)
    assert np.allclose(w, [1.5, -2.0, 0.5, 0.3])
