from __future__ import annotations

import numpy as np
from scipy import stats

from .errors import ConfigurationError


def make_state_grid(n_states: int) -> np.ndarray:
    """Standard-normal quantiles at k/(N+1), k = 1..N.

    The result is strictly increasing and read-only; every transition kernel is
    built on this same grid so all actions share one state index space.
    """
    N = int(n_states)
    if N < 1:
        raise ConfigurationError(f"grid size must be >= 1, got {n_states}")
    probs = np.arange(1, N + 1, dtype=float) / (N + 1)
    grid = stats.norm.ppf(probs)
    grid.setflags(write=False)
    return grid
