"""Fixed-size kernel model whose cross-validated error is the CSA energy.

The model keeps a small set of prototypes, approximates the kernel matrix on
them (Nystrom) and fits a regularized least-squares model in the resulting
primal feature space. energy(config, options) rebuilds the kernel feature map
only when the kernel hyperparameters in `config` differ from the last
configuration evaluated; otherwise the map, the parameter vector and the
cross-validation fold cache are reused.
"""
from __future__ import annotations
import logging
import math
import numpy as np

from .kernels import Kernel, KernelFamily, kernel_from_name
from .scaling import LabeledDataset
from .prototypes import select_prototypes
from .nystrom import IdentityFeatureMap, build_feature_map
from .crossval import PrimalCrossValidator, fit_primal

_module_logger = logging.getLogger(__name__)


class FixedSizeModel:
    """Fixed-size LS-SVM style model (numpy core).

    Parameters
    ----------
    dataset : LabeledDataset
        Training set; its column mean/variance drive all scaling.
    task : str
        'classification' (labels in {-1, +1}) or 'regression'.
    folds : int
        Number of cross-validation folds used by energy().
    cross_validator : object, optional
        Anything with set_data(features, labels) and
        crossvalidate(folds, reg_param, reuse_cache); defaults to PrimalCrossValidator.
    selection_iterations, selection_tolerance : int, float
        Budget of the greedy entropy prototype search.
    random_state : int, optional
        Seed for prototype selection and fold shuffling.
    logger : logging.Logger, optional
        Sink for progress messages; defaults to the module logger.
    """

    def __init__(self,
                 dataset: LabeledDataset,
                 task: str = 'classification',
                 folds: int = 4,
                 cross_validator=None,
                 selection_iterations: int = 25,
                 selection_tolerance: float = 1e-5,
                 random_state=None,
                 logger=None):
        self.dataset = dataset
        self.task = task
        self.folds = folds
        self.selection_iterations = selection_iterations
        self.selection_tolerance = selection_tolerance
        self.random_state = random_state
        self.log = logger or _module_logger
        if cross_validator is None:
            cross_validator = PrimalCrossValidator(task, random_state=0 if random_state is None else random_state)
        self.cross_validator = cross_validator

        # ---------------- Scaling ----------------
        self.scaler = dataset.scaler()
        self.scaled_features = self.scaler.transform(dataset.X)

        # ---------------- Kernel / feature map state ----------------
        self.kernel: Kernel | None = None
        self.prototype_idx = np.empty(0, dtype=int)
        self.feature_map = IdentityFeatureMap(dataset.dim)
        self.params = np.ones(self.feature_map.output_dim)
        self.processed = None
        self.current_state = {}
        self._kernel_key_state = None

        # Counters
        self.kernel_version = 0
        self.energy_calls = 0

    # -------------------------------- properties --------------------------------
    @property
    def npoints(self) -> int:
        return self.dataset.count

    @property
    def effective_dims(self) -> int:
        return self.feature_map.output_dim

    @property
    def prototypes(self):
        return self.dataset.X[self.prototype_idx]

    def default_subset_size(self) -> int:
        return int(math.sqrt(self.npoints))

    # -------------------------------- kernel approximation --------------------------------
    def optimum_subset(self, M: int):
        if M < self.npoints:
            self.log.info("Selecting %d prototypes out of %d points (quadratic Renyi entropy)", M, self.npoints)
            self.prototype_idx = select_prototypes(self.dataset.X, M,
                                                   self.selection_iterations,
                                                   self.selection_tolerance,
                                                   self.random_state)
        else:
            self.prototype_idx = np.arange(self.npoints)
        return self.prototype_idx

    def apply_kernel(self, kernel: Kernel, M: int | None = None):
        if M is None:
            M = self.default_subset_size()
        if M <= 0:
            raise ValueError(f"prototype count must be positive; got {M}")
        if M != self.prototype_idx.shape[0]:
            self.optimum_subset(M)

        scaled_prototypes = self.scaler.transform(self.prototypes)
        self.log.info("Building low rank approximation to kernel matrix: %r", kernel)
        self.feature_map = build_feature_map(scaled_prototypes, kernel)
        if self.feature_map.output_dim != self.params.shape[0]:
            self.params = np.ones(self.feature_map.output_dim)
        self.kernel = kernel
        self.kernel_version += 1
        # energy() records the key of the configuration it built from
        self._kernel_key_state = None
        return self.feature_map

    def apply_feature_map(self):
        self.processed = self.feature_map.transform(self.scaled_features)
        return self.processed

    def crossvalidate(self, folds: int, reg_param: float, reuse_cache: bool = False):
        if self.processed is None:
            self.apply_feature_map()
        self.cross_validator.set_data(self.processed, self.dataset.y)
        return self.cross_validator.crossvalidate(folds, reg_param, reuse_cache)

    # -------------------------------- energy --------------------------------
    @staticmethod
    def _kernel_key(family: KernelFamily, config):
        names = family.hyperparameter_names
        return family, frozenset((k, float(v)) for k, v in config.items() if k in names)

    def energy(self, config, options=None) -> float:
        """1 - cross-validated score of the model configured by `config`.

        options may contain 'kernel' (a KernelFamily name) and 'subset'
        (prototype count, default floor(sqrt(n))). config must contain 'RegParam'.
        """
        options = options or {}
        if 'RegParam' not in config:
            raise ValueError("configuration must define 'RegParam'")
        self.energy_calls += 1
        kernel_unchanged = True
        if 'kernel' in options:
            family = KernelFamily.parse(options['kernel'])
            kernel = kernel_from_name(family.value, config)
            M = int(options['subset']) if 'subset' in options else self.default_subset_size()
            key = self._kernel_key(family, config)
            if key != self._kernel_key_state:
                self.apply_kernel(kernel, M)
                self._kernel_key_state = key
                kernel_unchanged = False
        self.apply_feature_map()

        _, _, e = self.crossvalidate(self.folds, float(config['RegParam']), reuse_cache=kernel_unchanged)
        self.current_state = dict(config)
        self.log.debug("energy(%s) = %.6f (kernel unchanged: %s)", config, 1.0 - e, kernel_unchanged)
        return 1.0 - e

    # -------------------------------- training / prediction --------------------------------
    def learn(self, reg_param: float | None = None):
        if reg_param is None:
            reg_param = float(self.current_state.get('RegParam', 1.0))
        if self.processed is None:
            self.apply_feature_map()
        self.params = fit_primal(self.processed, self.dataset.y, reg_param)
        return self

    def predict(self, X):
        raw = self.feature_map.transform(self.scaler.transform(np.atleast_2d(X))) @ self.params
        if self.task == 'classification':
            return np.where(raw >= 0.0, 1.0, -1.0)
        return raw


__all__ = ["FixedSizeModel"]
