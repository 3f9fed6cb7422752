"""K-fold cross-validation of regularized least squares in the primal feature space.

crossvalidate(folds, reg_param, reuse_cache) -> (train_metric, test_metric, score)

Classification expects labels in {-1, +1} and scores accuracy of sign(f(x));
regression scores R^2 clipped to [0, 1]. Per-fold normal equations
(Phi^T Phi, Phi^T y) are cached so that a call with reuse_cache=True only
re-solves for a new regularization parameter.
"""
from __future__ import annotations
from typing import List, NamedTuple
import numpy as np
from scipy import linalg
from sklearn.model_selection import KFold
from sklearn.metrics import accuracy_score, r2_score

TASKS = ('classification', 'regression')


class FoldBlock(NamedTuple):
    train_idx: np.ndarray
    test_idx: np.ndarray
    gram: np.ndarray
    moment: np.ndarray


def solve_primal(gram, moment, reg_param: float):
    A = gram + reg_param * np.eye(gram.shape[0])
    try:
        return linalg.solve(A, moment, assume_a='sym')
    except linalg.LinAlgError:
        return np.linalg.lstsq(A, moment, rcond=None)[0]


def fit_primal(features, labels, reg_param: float):
    Phi = np.asarray(features, dtype=float)
    y = np.asarray(labels, dtype=float)
    return solve_primal(Phi.T @ Phi, Phi.T @ y, reg_param)


def score_predictions(task: str, y_true, raw):
    if task == 'classification':
        return float(accuracy_score(y_true, np.where(raw >= 0.0, 1.0, -1.0)))
    if y_true.shape[0] < 2:
        return 0.0
    return float(min(1.0, max(0.0, r2_score(y_true, raw))))


class PrimalCrossValidator:
    def __init__(self, task: str = 'classification', random_state=0):
        if task not in TASKS:
            raise ValueError(f"Unknown task: {task} (expected one of {TASKS})")
        self.task = task
        self.random_state = random_state
        self.features = None
        self.labels = None
        self._cache = None
        self.cache_hits = 0

    def set_data(self, features, labels):
        self.features = np.asarray(features, dtype=float)
        self.labels = np.asarray(labels, dtype=float).ravel()
        return self

    def _fold_blocks(self, folds: int) -> List[FoldBlock]:
        kf = KFold(n_splits=folds, shuffle=True, random_state=self.random_state)
        blocks = []
        for train_idx, test_idx in kf.split(self.features):
            Phi = self.features[train_idx]
            blocks.append(FoldBlock(train_idx, test_idx, Phi.T @ Phi, Phi.T @ self.labels[train_idx]))
        return blocks

    def _blocks(self, folds: int, reuse_cache: bool) -> List[FoldBlock]:
        if reuse_cache and self._cache is not None:
            cached_folds, blocks = self._cache
            if cached_folds == folds and blocks[0].gram.shape[0] == self.features.shape[1]:
                self.cache_hits += 1
                return blocks
        blocks = self._fold_blocks(folds)
        self._cache = (folds, blocks)
        return blocks

    def crossvalidate(self, folds: int, reg_param: float, reuse_cache: bool = False):
        if self.features is None:
            raise ValueError("set_data() must be called before crossvalidate()")
        if folds < 2 or folds > self.features.shape[0]:
            raise ValueError(f"folds must be in [2, {self.features.shape[0]}]; got {folds}")
        if reg_param < 0:
            raise ValueError(f"regularization parameter must be non-negative; got {reg_param}")

        train_scores, test_scores = [], []
        for block in self._blocks(folds, reuse_cache):
            w = solve_primal(block.gram, block.moment, reg_param)
            train_scores.append(score_predictions(
                self.task, self.labels[block.train_idx], self.features[block.train_idx] @ w))
            test_scores.append(score_predictions(
                self.task, self.labels[block.test_idx], self.features[block.test_idx] @ w))
        train_metric = float(np.mean(train_scores))
        test_metric = float(np.mean(test_scores))
        return train_metric, test_metric, test_metric


__all__ = ["PrimalCrossValidator", "FoldBlock", "solve_primal", "fit_primal", "score_predictions", "TASKS"]
