"""Forward simulation of an agent panel from a solved model.

Every agent gets its own child generator spawned from one seed, so trajectories are
independent, the panel is a pure function of the seed, and agents could be simulated
in any order (or in parallel) without changing the result.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .errors import ConfigurationError, SamplingError
from .solver import Solution
from .transitions import validate_stochastic_rows

logger = logging.getLogger(__name__)

PANEL_COLUMNS = ["id", "t", "state", "state_value", "choice", "action", "wage"]

SeedLike = Union[None, int, np.random.SeedSequence, np.random.Generator]


def initial_state_prior(n_states: int) -> np.ndarray:
    """Prior over starting states with mass proportional to 1/k, k = 1..N."""
    w = 1.0 / np.arange(1, int(n_states) + 1, dtype=float)
    return w / w.sum()


def sample_index(p: np.ndarray, rng: np.random.Generator) -> int:
    """Draw one index from the discrete distribution p by inverting its CDF."""
    p = np.asarray(p, dtype=float).reshape(-1)
    if p.size == 0 or not np.all(np.isfinite(p)) or np.any(p < 0):
        raise SamplingError(f"cannot sample from {p!r}")
    total = float(p.sum())
    if total <= 0.0:
        raise SamplingError("cannot sample from an all-zero distribution")
    return _draw(np.cumsum(p), rng)


def _draw(cdf: np.ndarray, rng: np.random.Generator) -> int:
    u = rng.random() * cdf[-1]
    return int(min(np.searchsorted(cdf, u, side="right"), cdf.size - 1))


def _child_generators(n_agents: int, seed: SeedLike) -> List[np.random.Generator]:
    if isinstance(seed, np.random.Generator):
        return list(seed.spawn(int(n_agents)))
    ss = seed if isinstance(seed, np.random.SeedSequence) else np.random.SeedSequence(seed)
    return [np.random.default_rng(s) for s in ss.spawn(int(n_agents))]


class _Tables:
    """CDFs precomputed once from the solution; shared read-only by all agents."""

    def __init__(self, solution: Solution, prior: np.ndarray) -> None:
        validate_stochastic_rows(solution.ccp)
        validate_stochastic_rows(solution.kernels)
        validate_stochastic_rows(prior)
        self.ccp_cdf = np.cumsum(solution.ccp, axis=2)  # (period, state, action)
        self.kernel_cdf = np.cumsum(solution.kernels, axis=2)  # (action, state, next_state)
        self.prior_cdf = np.cumsum(prior)


def simulate_agent(
    solution: Solution,
    rng: np.random.Generator,
    agent_id: int = 0,
    initial_state: Optional[int] = None,
    _tables: Optional[_Tables] = None,
) -> List[Tuple[int, int, int, float, int, str, float]]:
    """One trajectory as a list of (id, t, state, state_value, choice, action, wage) rows.

    Outside-option periods record wage = NaN (missing), never a numeric placeholder.
    """
    params = solution.params
    tables = _tables if _tables is not None else _Tables(solution, initial_state_prior(solution.n_states))
    T = solution.horizon
    grid = solution.grid
    names = params.action_names

    if initial_state is None:
        x = _draw(tables.prior_cdf, rng)
    else:
        x = int(initial_state)
        if not (0 <= x < solution.n_states):
            raise ConfigurationError(f"initial state {x} outside 0..{solution.n_states - 1}")

    rows = []
    for t in range(1, T + 1):
        a = _draw(tables.ccp_cdf[t - 1, x], rng)
        action = params.actions[a]
        if action.pays_wage:
            log_w = action.wage_return * grid[x] + params.trend * t + params.wage_sd * rng.standard_normal()
            wage = float(np.exp(log_w))
        else:
            wage = float("nan")
        rows.append((int(agent_id), t, x, float(grid[x]), a, names[a], wage))
        if t < T:
            x = _draw(tables.kernel_cdf[a, x], rng)
    return rows


def simulate_panel(
    solution: Solution,
    n_agents: int,
    seed: SeedLike = None,
    initial_states: Optional[Sequence[int]] = None,
    prior: Optional[np.ndarray] = None,
) -> pd.DataFrame:
    """Simulate `n_agents` independent trajectories.

    Returns a DataFrame with columns id, t, state, state_value, choice, action, wage,
    sorted by (id, t). `action` is categorical over the configured action names and
    `wage` is NaN whenever the outside option was chosen.
    """
    n_agents = int(n_agents)
    if n_agents < 1:
        raise ConfigurationError(f"n_agents must be >= 1, got {n_agents}")
    if initial_states is not None and len(initial_states) != n_agents:
        raise ConfigurationError("initial_states must have one entry per agent")
    if prior is None:
        prior = initial_state_prior(solution.n_states)
    prior = np.asarray(prior, dtype=float).reshape(-1)
    if prior.size != solution.n_states:
        raise ConfigurationError(f"prior has {prior.size} entries, expected {solution.n_states}")

    tables = _Tables(solution, prior)
    rngs = _child_generators(n_agents, seed)

    rows = []
    for i, rng in enumerate(rngs):
        x0 = None if initial_states is None else initial_states[i]
        rows.extend(simulate_agent(solution, rng, agent_id=i, initial_state=x0, _tables=tables))

    df = pd.DataFrame(rows, columns=PANEL_COLUMNS)
    df["action"] = pd.Categorical(df["action"], categories=solution.action_names)
    df["wage"] = df["wage"].astype(float)
    logger.info("simulated %d agents x %d periods (%d rows)", n_agents, solution.horizon, len(df))
    return df
