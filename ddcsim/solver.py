"""Backward induction for the finite-horizon logit dynamic program.

Tensor layout (0-based storage, 1-based periods in the public accessors):

    Q[t-1, x, a]   choice-specific value of action a in state x, period t
    V[t-1, x]      integrated value  logsumexp_a Q[t-1, x, a]
    ccp[t-1, x, a] logit choice probabilities derived from Q

Terminal period:   Q[T, x, a] = terminal_payoff(a, x)        (perpetuity, no continuation)
Earlier periods:   Q[t, x, a] = flow(a, x, t) + beta * sum_x' P[a, x, x'] V[t+1, x']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional

import numpy as np
import pandas as pd

from .configs import ModelParams
from .errors import ConfigurationError, NumericalError
from .grid import make_state_grid
from .payoffs import flow_payoff_matrix, terminal_payoff_matrix
from .softmax import choice_probabilities, logsumexp
from .transitions import build_transition_kernels, validate_stochastic_rows

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Solution:
    params: ModelParams
    grid: np.ndarray  # (state,)
    kernels: np.ndarray  # (action, state, next_state)
    Q: np.ndarray  # (period, state, action)
    V: np.ndarray  # (period, state)
    ccp: np.ndarray  # (period, state, action)

    @property
    def horizon(self) -> int:
        return int(self.Q.shape[0])

    @property
    def n_states(self) -> int:
        return int(self.Q.shape[1])

    @property
    def n_actions(self) -> int:
        return int(self.Q.shape[2])

    @property
    def action_names(self) -> List[str]:
        return self.params.action_names

    def _row(self, t: int) -> int:
        t = int(t)
        if not (1 <= t <= self.horizon):
            raise IndexError(f"period must be in 1..{self.horizon}, got {t}")
        return t - 1

    def q(self, t: int) -> np.ndarray:
        """(state, action) choice values for period t (1-based)."""
        return self.Q[self._row(t)]

    def v(self, t: int) -> np.ndarray:
        return self.V[self._row(t)]

    def choice_probabilities(self, t: int) -> np.ndarray:
        return self.ccp[self._row(t)]

    def to_frame(self) -> pd.DataFrame:
        """Long table with one row per (period, state, action)."""
        T, N, A = self.Q.shape
        t_idx, x_idx, a_idx = np.meshgrid(np.arange(T), np.arange(N), np.arange(A), indexing="ij")
        names = np.asarray(self.action_names, dtype=object)
        df = pd.DataFrame(
            {
                "t": t_idx.ravel() + 1,
                "state": x_idx.ravel(),
                "state_value": self.grid[x_idx.ravel()],
                "choice": a_idx.ravel(),
                "action": names[a_idx.ravel()],
                "Q": self.Q.ravel(),
                "V": self.V[t_idx.ravel(), x_idx.ravel()],
                "ccp": self.ccp.ravel(),
            }
        )
        return df


def _freeze(a: np.ndarray) -> np.ndarray:
    a.setflags(write=False)
    return a


def backward_induction(params: ModelParams, grid: np.ndarray, kernels: np.ndarray):
    """Fill Q and V from t = T down to t = 1. Returns (Q, V) as fresh arrays."""
    T, N, A = int(params.horizon), int(grid.size), int(params.n_actions)
    if kernels.shape != (A, N, N):
        raise ConfigurationError(f"kernels have shape {kernels.shape}, expected {(A, N, N)}")

    Q = np.empty((T, N, A), dtype=float)
    V = np.empty((T, N), dtype=float)
    beta = params.discount

    Q[T - 1] = terminal_payoff_matrix(params, grid)
    V[T - 1] = logsumexp(Q[T - 1], axis=1)

    for t in range(T - 1, 0, -1):  # 1-based period t, stored at row t-1
        # EV[x, a] = sum_x' P[a, x, x'] V[t+1, x']
        EV = np.einsum("axy,y->xa", kernels, V[t])
        Q[t - 1] = flow_payoff_matrix(params, grid, t) + beta * EV
        V[t - 1] = logsumexp(Q[t - 1], axis=1)
        logger.debug("period %d solved: V in [%.4f, %.4f]", t, V[t - 1].min(), V[t - 1].max())

    if not (np.all(np.isfinite(Q)) and np.all(np.isfinite(V))):
        raise NumericalError("backward induction produced non-finite values")
    return Q, V


def solve(params: ModelParams, grid: Optional[np.ndarray] = None, kernels: Optional[np.ndarray] = None) -> Solution:
    """Solve the model and return read-only Q / V / choice-probability tensors."""
    params.validate()
    if grid is None:
        grid = make_state_grid(params.n_states)
    grid = np.asarray(grid, dtype=float).reshape(-1)
    if grid.size != int(params.n_states):
        raise ConfigurationError(f"grid has {grid.size} points, params.n_states = {params.n_states}")
    if np.any(np.diff(grid) <= 0):
        raise ConfigurationError("state grid must be strictly increasing")
    if kernels is None:
        kernels = build_transition_kernels(grid, params.drifts, params.transition_sd)
    kernels = np.asarray(kernels, dtype=float)
    validate_stochastic_rows(kernels, error=ConfigurationError)

    logger.info(
        "solving T=%d N=%d A=%d rho=%.3f r=%.4f",
        params.horizon, params.n_states, params.n_actions, params.rho, params.interest_rate,
    )
    Q, V = backward_induction(params, grid, kernels)
    ccp = choice_probabilities(Q, axis=2)

    grid = grid.copy()
    kernels = kernels.copy()
    return Solution(
        params=params,
        grid=_freeze(grid),
        kernels=_freeze(kernels),
        Q=_freeze(Q),
        V=_freeze(V),
        ccp=_freeze(ccp),
    )
