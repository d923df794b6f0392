"""Per-action Markov kernels on the fixed state grid.

Latent law of motion for action a:

    x' = x + drift_a + sd * eps,   eps ~ N(0, 1)

discretized by evaluating the normal density at every (current, next) grid pair and
normalizing each row. Kernels are stacked as P[action, state, next_state].
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
from scipy import stats

from .errors import ConfigurationError, SamplingError

ROW_SUM_ATOL = 1e-9


def gaussian_kernel(grid: np.ndarray, drift: float, sd: float) -> np.ndarray:
    grid = np.asarray(grid, dtype=float).reshape(-1)
    sd = float(sd)
    if not (np.isfinite(sd) and sd > 0):
        raise ConfigurationError(f"transition sd must be positive and finite, got {sd}")
    if not np.isfinite(drift):
        raise ConfigurationError(f"transition drift must be finite, got {drift}")

    centers = grid[:, None] + float(drift)  # (state, 1)
    dens = stats.norm.pdf(grid[None, :], loc=centers, scale=sd)  # (state, next_state)

    mass = dens.sum(axis=1)
    bad = ~np.isfinite(mass) | (mass <= 0.0)
    if bad.any():
        rows = np.flatnonzero(bad).tolist()
        raise ConfigurationError(
            f"transition rows {rows} have zero mass (drift={drift}, sd={sd}); "
            "the kernel cannot be normalized"
        )
    return dens / mass[:, None]


def build_transition_kernels(grid: np.ndarray, drifts: Sequence[float], sd: float) -> np.ndarray:
    """Return P with shape (A, N, N), P[a, i, j] = Pr(x_{t+1} = grid[j] | x_t = grid[i], a)."""
    grid = np.asarray(grid, dtype=float).reshape(-1)
    if len(drifts) == 0:
        raise ConfigurationError("need at least one drift to build transition kernels")
    P = np.stack([gaussian_kernel(grid, d, sd) for d in drifts], axis=0)
    validate_stochastic_rows(P, error=ConfigurationError)
    P.setflags(write=False)
    return P


def validate_stochastic_rows(P: np.ndarray, atol: float = ROW_SUM_ATOL, error=SamplingError) -> None:
    """Check that every last-axis row of P is a probability distribution."""
    P = np.asarray(P, dtype=float)
    if not np.all(np.isfinite(P)):
        raise error("probability array contains non-finite entries")
    if np.any(P < 0.0):
        raise error("probability array contains negative entries")
    sums = P.sum(axis=-1)
    worst = float(np.max(np.abs(sums - 1.0))) if sums.size else 0.0
    if worst > atol:
        raise error(f"probability rows do not sum to one (max deviation {worst:.3e})")
