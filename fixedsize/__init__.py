"""Package initializer for fixedsize.

Exposes the FixedSizeModel (the energy function tuned by CSA) together with
the kernel families and the low-rank approximation building blocks.
"""

from .kernels import Kernel, KernelFamily, UnknownKernelError, kernel_from_name
from .scaling import GaussianScaler, LabeledDataset
from .prototypes import select_prototypes, silverman_bandwidth
from .nystrom import NystromFeatureMap, build_feature_map, girolami_criterion
from .crossval import PrimalCrossValidator
from .model import FixedSizeModel

__all__ = [
    "Kernel", "KernelFamily", "UnknownKernelError", "kernel_from_name",
    "GaussianScaler", "LabeledDataset",
    "select_prototypes", "silverman_bandwidth",
    "NystromFeatureMap", "build_feature_map", "girolami_criterion",
    "PrimalCrossValidator", "FixedSizeModel",
]
