"""Global hyperparameter optimization: grid search and Coupled Simulated Annealing.

Functions:
- coupling_factor(variant, energies, temperature)
- acceptance_probability(variant, energy, old_energy, gamma, temperature)
- desired_variance(variant, m)
- acceptance_temperature(initial_temp, k) / mutation_temperature(initial_temp, k)
- prior_energy(prior, config)
- best_configuration(landscape)

Classes:
- GridSearch: evaluates a grid of configurations around an initial one
- CoupledSimulatedAnnealing: anneals that grid (the landscape) for a fixed
  number of iterations

The optimized `system` only needs an energy(config, options) -> float method;
lower energy is better.
"""
from __future__ import annotations
import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, NamedTuple, Optional, Tuple
import numpy as np
from stats_utils import combine, get_stats

Configuration = Dict[str, float]


class UnknownVariantError(ValueError):
    """Raised when a CSA variant name is not recognized."""


class Variant(Enum):
    MuSA = 'CSA-MuSA'
    BA = 'CSA-BA'
    M = 'CSA-M'
    MwVC = 'CSA-MwVC'
    SA = 'SA'

    @classmethod
    def parse(cls, name) -> 'Variant':
        if isinstance(name, cls):
            return name
        for v in cls:
            if name in (v.value, v.name):
                return v
        valid = ", ".join(v.value for v in cls)
        raise UnknownVariantError(f"Unknown CSA variant: {name!r} (expected one of {valid})")


ALGORITHM_NAMES = {
    Variant.MuSA: "Multi-state Simulated Annealing",
    Variant.BA: "Blind Acceptance",
    Variant.M: "Modified CSA",
    Variant.MwVC: "Modified CSA with Variance Control",
    Variant.SA: "Simulated Annealing",
}


def algorithm_name(variant) -> str:
    return ALGORITHM_NAMES[Variant.parse(variant)]


class LandscapePoint(NamedTuple):
    energy: float
    config: Configuration


class MemberOutcome(NamedTuple):
    accepted: bool
    probability: float
    draw: Optional[float]  # None when the candidate was strictly better


@dataclass(frozen=True)
class AnnealingState:
    landscape: Tuple[LandscapePoint, ...]
    acceptance_probs: Tuple[float, ...]
    acceptance_temperature: float
    iterations_left: int
    outcomes: Tuple[MemberOutcome, ...] = ()


# ---- Variant formulas ----

def coupling_factor(variant, energies, temperature: float) -> float:
    variant = Variant.parse(variant)
    e = np.asarray(energies, dtype=float)
    if variant in (Variant.MuSA, Variant.BA):
        return float(np.sum(np.exp(-e / temperature)))
    if variant in (Variant.M, Variant.MwVC):
        return float(np.sum(np.exp(e / temperature)))
    return 1.0


def acceptance_probability(variant, energy: float, old_energy: float,
                           gamma: float, temperature: float) -> float:
    variant = Variant.parse(variant)
    if variant is Variant.MuSA:
        w = np.exp(-energy / temperature)
        return float(w / (w + gamma))
    if variant is Variant.BA:
        return float(1.0 - np.exp(-old_energy / temperature) / gamma)
    if variant in (Variant.M, Variant.MwVC):
        return float(np.exp(old_energy / temperature) / gamma)
    return float(gamma / (1.0 + np.exp((energy - old_energy) / temperature)))


def desired_variance(variant, m: int) -> float:
    variant = Variant.parse(variant)
    if variant in (Variant.M, Variant.MwVC):
        return 0.99 * (m - 1) / float(m) ** 2
    return 0.99


def acceptance_temperature(initial_temp: float, k: int) -> float:
    return initial_temp / math.log(k + 1.0)


def mutation_temperature(initial_temp: float, k: int) -> float:
    return initial_temp / k


# ---- Landscape helpers ----

def prior_energy(prior, config: Configuration) -> float:
    """-sum log p(h) when `prior` holds a distribution for every key, else 0."""
    if not prior or not all(k in prior for k in config):
        return 0.0
    return -sum(float(prior[k].logpdf(v)) for k, v in config.items())


def best_configuration(landscape) -> LandscapePoint:
    if not landscape:
        raise ValueError("empty energy landscape")
    return min(landscape, key=lambda p: p.energy)


# ---- Grid search ----

class GridSearch:
    """Evaluate `grid_size` values per hyperparameter around an initial configuration.

    Linear scale: initial + i*step; log scale: initial * exp(i*step); i = 0..grid_size-1.
    The landscape holds grid_size ** len(initial_config) members.
    """

    def __init__(self, system, grid_size: int = 3, step: float = 0.3,
                 log_scale: bool = False, prior=None, logger=None):
        if isinstance(grid_size, bool) or not isinstance(grid_size, int) or grid_size <= 0:
            raise ValueError(f"grid size must be a positive integer; got {grid_size!r}")
        self.system = system
        self.grid_size = grid_size
        self.step_size = float(step)
        self.log_scale = bool(log_scale)
        self.prior = prior
        self.log = logger if logger is not None else logging.getLogger(__name__)

    def _check_config(self, initial_config):
        if not initial_config:
            raise ValueError("initial configuration must hold at least one hyperparameter")

    def grid(self, initial_config: Configuration) -> List[Configuration]:
        self._check_config(initial_config)
        keys = sorted(initial_config)
        if self.log_scale:
            axes = [[initial_config[k] * math.exp(i * self.step_size) for i in range(self.grid_size)] for k in keys]
        else:
            axes = [[initial_config[k] + i * self.step_size for i in range(self.grid_size)] for k in keys]
        return [dict(zip(keys, values)) for values in combine(axes)]

    def evaluate(self, config: Configuration, options) -> float:
        return float(self.system.energy(config, options)) + prior_energy(self.prior, config)

    def energy_landscape(self, initial_config: Configuration, options=None) -> List[LandscapePoint]:
        options = options or {}
        landscape = []
        for config in self.grid(initial_config):
            energy = self.evaluate(config, options)
            self.log.debug("Grid point %s -> energy %.6f", config, energy)
            landscape.append(LandscapePoint(energy, config))
        return landscape

    def optimize(self, initial_config: Configuration, options=None):
        landscape = self.energy_landscape(initial_config, options)
        best = best_configuration(landscape)
        self.log.info("Optimum configuration: %s (energy %.6f)", best.config, best.energy)
        return best, landscape


# ---- Coupled Simulated Annealing ----

class CoupledSimulatedAnnealing(GridSearch):
    """Coupled Simulated Annealing over the grid-search landscape.

    Iteration k runs from max_iterations down to 1. Every member is mutated
    with Cauchy(0, T0/k) noise (absolute value kept), re-evaluated, and
    accepted when strictly better or with the variant's acceptance
    probability otherwise. The run stops after exactly max_iterations
    iterations unless should_stop() returns True between two iterations.
    """

    def __init__(self, system,
                 variant=Variant.MuSA,
                 max_iterations: int = 10,
                 initial_temperature: float = 1.0,
                 alpha: float = 0.05,
                 grid_size: int = 3,
                 step: float = 0.3,
                 log_scale: bool = False,
                 prior=None,
                 random_state=None,
                 logger=None,
                 callback=None,
                 should_stop=None):
        super().__init__(system, grid_size, step, log_scale, prior, logger)
        self.variant = Variant.parse(variant)
        if max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0; got {max_iterations}")
        if not initial_temperature > 0:
            raise ValueError(f"initial temperature must be positive; got {initial_temperature}")
        if not (0.0 < alpha < 1.0):
            raise ValueError(f"alpha must be in (0,1); got {alpha}")
        self.max_iterations = int(max_iterations)
        self.initial_temperature = float(initial_temperature)
        self.alpha = float(alpha)
        self.rng = np.random.default_rng(random_state)
        self.callback = callback
        self.should_stop = should_stop
        self.state: Optional[AnnealingState] = None

    # -------------------------------- building blocks --------------------------------
    def mutate(self, config: Configuration, temperature: float) -> Configuration:
        return {k: abs(config[k] + temperature * self.rng.standard_cauchy()) for k in sorted(config)}

    def initial_state(self, initial_config: Configuration, options) -> AnnealingState:
        landscape = self.energy_landscape(initial_config, options)
        temp = self.initial_temperature
        gamma = coupling_factor(self.variant, [p.energy for p in landscape], temp)
        probs = tuple(acceptance_probability(self.variant, p.energy, p.energy, gamma, temp)
                      for p in landscape)
        return AnnealingState(tuple(landscape), probs, temp, self.max_iterations)

    def next_acceptance_temperature(self, state: AnnealingState, sigma_d: float) -> float:
        k = state.iterations_left
        if self.variant is Variant.MwVC:
            _, variance = get_stats([[p] for p in state.acceptance_probs])
            if variance[0] < sigma_d:
                return state.acceptance_temperature * (1.0 - self.alpha)
            return state.acceptance_temperature * (1.0 + self.alpha)
        return acceptance_temperature(self.initial_temperature, k)

    def step(self, state: AnnealingState, options, sigma_d: float) -> AnnealingState:
        """One accept/reject sweep over the landscape; returns the next state."""
        k = state.iterations_left
        mut_temp = mutation_temperature(self.initial_temperature, k)
        acc_temp = self.next_acceptance_temperature(state, sigma_d)

        max_energy = max(p.energy for p in state.landscape)
        gamma = coupling_factor(self.variant, [p.energy - max_energy for p in state.landscape], acc_temp)

        points, probs, outcomes = [], [], []
        for point in state.landscape:
            new_config = self.mutate(point.config, mut_temp)
            new_energy = self.evaluate(new_config, options)
            prob = acceptance_probability(self.variant, new_energy - max_energy, point.energy,
                                          gamma, acc_temp)
            if new_energy < point.energy:
                accepted, draw = True, None
            else:
                draw = float(self.rng.random())
                accepted = draw <= prob
            self.log.debug("New configuration %s: energy %.6f, p=%.4f -> %s",
                           new_config, new_energy, prob, "Accepted" if accepted else "Rejected")
            points.append(LandscapePoint(new_energy, new_config) if accepted else point)
            probs.append(prob)
            outcomes.append(MemberOutcome(accepted, prob, draw))
        return AnnealingState(tuple(points), tuple(probs), acc_temp, k - 1, tuple(outcomes))

    # -------------------------------- main loop --------------------------------
    def anneal(self, initial_config: Configuration, options=None) -> List[LandscapePoint]:
        """Run CSA and return the final landscape."""
        options = options or {}
        self._check_config(initial_config)
        m = self.grid_size ** len(initial_config)
        if self.variant is Variant.MwVC and m < 2:
            raise ValueError("variance control needs a landscape of at least two members")
        sigma_d = desired_variance(self.variant, m)

        self.log.info("%s", "-+" * 36)
        self.log.info("Coupled Simulated Annealing (CSA): %s", algorithm_name(self.variant))
        self.log.info("%s", "-+" * 36)

        state = self.initial_state(initial_config, options)
        while state.iterations_left > 0:
            if self.should_stop is not None and self.should_stop():
                self.log.info("CSA stopped with %d iteration(s) left", state.iterations_left)
                break
            self.log.info("CSA Iteration: %d", self.max_iterations - state.iterations_left + 1)
            state = self.step(state, options, sigma_d)
            accepted = sum(o.accepted for o in state.outcomes)
            self.log.info("   accepted %d/%d, T_acc=%.4f, best energy %.6f", accepted,
                          len(state.outcomes), state.acceptance_temperature,
                          best_configuration(state.landscape).energy)
            if self.callback is not None:
                self.callback(state)
        self.state = state
        return list(state.landscape)

    def optimize(self, initial_config: Configuration, options=None):
        landscape = self.anneal(initial_config, options)
        best = best_configuration(landscape)
        self.log.info("Optimum configuration: %s (energy %.6f)", best.config, best.energy)
        return best, landscape


__all__ = [
    'Configuration', 'UnknownVariantError', 'Variant', 'ALGORITHM_NAMES', 'algorithm_name',
    'LandscapePoint', 'MemberOutcome', 'AnnealingState',
    'coupling_factor', 'acceptance_probability', 'desired_variance',
    'acceptance_temperature', 'mutation_temperature',
    'prior_energy', 'best_configuration',
    'GridSearch', 'CoupledSimulatedAnnealing'
]
