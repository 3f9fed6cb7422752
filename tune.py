"""Tune a fixed-size kernel model on a generated dataset with CSA or grid search.

Example:
  python tune.py --dataset xor --kernel RBF --variant CSA-MuSA --iterations 5 --grid 2
"""
from __future__ import annotations
import logging
import time

import numpy as np
from scipy import stats

from csa import CoupledSimulatedAnnealing, GridSearch, Variant
from data_gens import get_generator, task_for
from fixedsize import FixedSizeModel, KernelFamily, LabeledDataset

logger = logging.getLogger(__name__)

# Initial values for each family's hyperparameters (plus RegParam)
DEFAULT_START = {
    'RBF': {'bandwidth': 1.0},
    'Polynomial': {'degree': 2.0, 'offset': 1.0},
    'Exponential': {'beta': 1.0},
    'Laplacian': {'be': 1.0},
    'Cauchy': {'sigma': 1.0},
    'RationalQuadratic': {'c': 1.0},
    'Wave': {'theta': 1.0},
}


def configure_logging(quiet: bool = False, verbose: bool = False):
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    logging.basicConfig(level=level, format='[%(levelname)s] %(message)s')
    logger.debug("Logging configured. quiet=%s verbose=%s", quiet, verbose)


def build_model(dataset: str, n_samples: int = 400, random_state: int = 42):
    X, y = get_generator(dataset)(n_samples=n_samples, random_state=random_state)
    data = LabeledDataset(X, y)
    return FixedSizeModel(data, task=task_for(dataset), random_state=random_state)


def gamma_prior(config, shape: float = 2.0):
    """Weakly informative Gamma prior centred on each starting value."""
    return {k: stats.gamma(a=shape, scale=max(v, 1e-3) / shape) for k, v in config.items()}


def run_tuning(dataset: str = "xor", kernel: str = "RBF", method: str = "csa",
               variant: str = "CSA-MuSA", iterations: int = 5, grid: int = 2,
               step: float = 0.3, log_scale: bool = False, subset=None,
               n_samples: int = 400, use_prior: bool = False, random_state: int = 42):
    family = KernelFamily.parse(kernel)
    model = build_model(dataset, n_samples, random_state)
    start = dict(DEFAULT_START[family.value])
    start['RegParam'] = 1.0
    options = {'kernel': family.value}
    if subset is not None:
        options['subset'] = str(subset)
    prior = gamma_prior(start) if use_prior else None

    logger.info("%s", "=" * 80)
    logger.info("Dataset: %s (%d points, task=%s)", dataset, model.npoints, model.task)
    logger.info("Kernel: %s, method: %s, start: %s", family.value, method, start)

    t0 = time.time()
    if method == "gs":
        optimizer = GridSearch(model, grid_size=grid, step=step, log_scale=log_scale, prior=prior)
    else:
        optimizer = CoupledSimulatedAnnealing(model, variant=variant, max_iterations=iterations,
                                              grid_size=grid, step=step, log_scale=log_scale,
                                              prior=prior, random_state=random_state)
    best, landscape = optimizer.optimize(start, options)
    elapsed = time.time() - t0

    # refit on the optimum and report the training score
    model.energy(best.config, options)
    model.learn(best.config['RegParam'])
    preds = model.predict(model.dataset.X)
    if model.task == 'classification':
        train_score = float(np.mean(preds == model.dataset.y))
    else:
        train_score = float(1.0 - np.mean((preds - model.dataset.y) ** 2) / np.var(model.dataset.y))

    logger.info("%s", "=" * 80)
    logger.info("OPTIMIZATION RESULTS")
    logger.info("Best energy: %.4f, train score: %.4f, time: %.1fs", best.energy, train_score, elapsed)
    for k, v in best.config.items():
        logger.info("   %s: %.6g", k, v)
    logger.info("Landscape:")
    for rank, point in enumerate(sorted(landscape, key=lambda p: p.energy), 1):
        logger.info("%-4d %.4f %s", rank, point.energy, point.config)
    return {
        'best_config': best.config,
        'best_energy': best.energy,
        'train_score': train_score,
        'landscape': landscape,
        'kernel_builds': model.kernel_version,
        'total_time': elapsed,
    }


if __name__ == "__main__":
    import argparse
    parser = argparse.ArgumentParser(description="Tune a fixed-size kernel model (Nystrom + CSA)")
    parser.add_argument("--dataset", type=str, default="xor", help="Dataset generator name (xor, spiral)")
    parser.add_argument("--kernel", choices=[f.value for f in KernelFamily], default="RBF",
                        help="Kernel family")
    parser.add_argument("--method", choices=["csa", "gs"], default="csa",
                        help="Global optimizer: csa=coupled simulated annealing, gs=grid search")
    parser.add_argument("--variant", choices=[v.value for v in Variant], default=Variant.MuSA.value,
                        help="CSA variant")
    parser.add_argument("--iterations", type=int, default=5, help="CSA iterations")
    parser.add_argument("--grid", type=int, default=2, help="Grid points per hyperparameter")
    parser.add_argument("--step", type=float, default=0.3, help="Grid step")
    parser.add_argument("--log-scale", action="store_true", default=False, help="Logarithmic grid")
    parser.add_argument("--subset", type=int, default=None, help="Prototype count (default sqrt(n))")
    parser.add_argument("--samples", type=int, default=400, help="Dataset size")
    parser.add_argument("--prior", action="store_true", default=False,
                        help="Add a Gamma prior energy on every hyperparameter")
    parser.add_argument("--seed", type=int, default=42, help="Random seed")
    parser.add_argument("--verbose", action="store_true", default=False, help="Verbose debug output")
    parser.add_argument("--quiet", action="store_true", default=False, help="Suppress most logs (overrides --verbose)")
    args = parser.parse_args()
    configure_logging(quiet=args.quiet, verbose=args.verbose)

    run_tuning(dataset=args.dataset, kernel=args.kernel, method=args.method,
               variant=args.variant, iterations=args.iterations, grid=args.grid,
               step=args.step, log_scale=args.log_scale, subset=args.subset,
               n_samples=args.samples, use_prior=args.prior, random_state=args.seed)
