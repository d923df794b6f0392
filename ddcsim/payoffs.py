"""Deterministic flow payoffs (before the Gumbel taste shock)."""

from __future__ import annotations

import numpy as np

from .configs import ActionSpec, ModelParams
from .errors import ConfigurationError

LOG_UTILITY_TOL = 1e-12


def crra_utility(w, rho: float):
    """CRRA transform (w^(1-rho) - 1) / (1 - rho); log(w) at rho == 1."""
    w_arr = np.asarray(w, dtype=float)
    if not np.all(np.isfinite(w_arr)) or np.any(w_arr <= 0.0):
        raise ConfigurationError("CRRA utility is undefined for non-positive or non-finite wages")
    rho = float(rho)
    if abs(rho - 1.0) < LOG_UTILITY_TOL:
        out = np.log(w_arr)
    else:
        out = (np.power(w_arr, 1.0 - rho) - 1.0) / (1.0 - rho)
    return float(out) if out.ndim == 0 else out


def lognormal_correction(sigma: float, rho: float) -> float:
    """exp(sigma^2 (1-rho)^2 / 2): expectation correction under log-normal wage noise."""
    return float(np.exp(0.5 * float(sigma) ** 2 * (1.0 - float(rho)) ** 2))


def deterministic_wage(state, wage_return: float, trend: float, horizon: int):
    return np.exp(float(wage_return) * np.asarray(state, dtype=float) + float(trend) * int(horizon))


def flow_payoff(params: ModelParams, action: ActionSpec, state, t: int):
    """Flow payoff of `action` at grid value(s) `state` in period t (1-based).

    The wage level uses the horizon length in its time-trend term; t only selects the
    period and leaves the payoff unchanged.
    """
    state = np.asarray(state, dtype=float)
    if not action.pays_wage:
        return np.full(state.shape, float(action.intercept)) if state.ndim else float(action.intercept)

    w = deterministic_wage(state, action.wage_return, params.trend, params.horizon)
    u = np.asarray(crra_utility(w, params.rho), dtype=float)
    out = u * lognormal_correction(params.wage_sd, params.rho) + float(action.intercept)
    return float(out) if out.ndim == 0 else out


def terminal_payoff(params: ModelParams, action: ActionSpec, state):
    """Terminal-period payoff read as a perpetuity: flow payoff / divisor.

    The outside option is annuitized too unless `annuitize_outside_option` is off,
    in which case its terminal payoff is the bare intercept.
    """
    flow = flow_payoff(params, action, state, params.horizon)
    if action.pays_wage or params.annuitize_outside_option:
        return flow / params.annuity_divisor
    return flow


def flow_payoff_matrix(params: ModelParams, grid: np.ndarray, t: int) -> np.ndarray:
    """(state, action) matrix of flow payoffs for period t."""
    grid = np.asarray(grid, dtype=float).reshape(-1)
    return np.stack([np.asarray(flow_payoff(params, a, grid, t), dtype=float) for a in params.actions], axis=1)


def terminal_payoff_matrix(params: ModelParams, grid: np.ndarray) -> np.ndarray:
    grid = np.asarray(grid, dtype=float).reshape(-1)
    return np.stack([np.asarray(terminal_payoff(params, a, grid), dtype=float) for a in params.actions], axis=1)
