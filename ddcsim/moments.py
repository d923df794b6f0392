"""Descriptive moments of a simulated panel and their model counterparts.

These are consistency checks between the solved policy and simulated behaviour; no
structural parameters are recovered here.
"""

from __future__ import annotations

from typing import Optional

import numpy as np
import pandas as pd

from .errors import ConfigurationError
from .simulate import initial_state_prior
from .solver import Solution


def choice_shares(panel: pd.DataFrame, n_actions: Optional[int] = None) -> pd.DataFrame:
    """Per-period action frequencies; rows indexed by t, one column per choice code."""
    if n_actions is None:
        n_actions = int(panel["choice"].max()) + 1
    counts = pd.crosstab(panel["t"], panel["choice"]).reindex(columns=range(int(n_actions)), fill_value=0)
    return counts.div(counts.sum(axis=1), axis=0)


def state_distributions(solution: Solution, prior: Optional[np.ndarray] = None) -> np.ndarray:
    """Marginal state distribution D[t-1, x] implied by the policy and kernels.

    D_{t+1}[x'] = sum_x sum_a D_t[x] ccp[t, x, a] P[a, x, x']
    """
    if prior is None:
        prior = initial_state_prior(solution.n_states)
    D = np.empty((solution.horizon, solution.n_states), dtype=float)
    D[0] = np.asarray(prior, dtype=float)
    for t in range(1, solution.horizon):
        joint = D[t - 1][:, None] * solution.ccp[t - 1]  # (state, action)
        D[t] = np.einsum("xa,axy->y", joint, solution.kernels)
    return D


def model_choice_shares(solution: Solution, prior: Optional[np.ndarray] = None) -> pd.DataFrame:
    """Unconditional per-period choice probabilities, same layout as choice_shares."""
    D = state_distributions(solution, prior)
    shares = np.einsum("tx,txa->ta", D, solution.ccp)
    return pd.DataFrame(shares, index=pd.Index(np.arange(1, solution.horizon + 1), name="t"),
                        columns=range(solution.n_actions))


def theoretical_choice_shares(solution: Solution, panel: pd.DataFrame) -> pd.DataFrame:
    """Model choice probabilities averaged over the simulated states of each period."""
    t = panel["t"].to_numpy(dtype=int)
    x = panel["state"].to_numpy(dtype=int)
    p = solution.ccp[t - 1, x]  # (rows, action)
    df = pd.DataFrame(p, columns=range(solution.n_actions))
    df["t"] = t
    return df.groupby("t").mean()


def ccp_consistency(solution: Solution, panel: pd.DataFrame, t: int = 1,
                    prior: Optional[np.ndarray] = None) -> pd.DataFrame:
    """Observed vs. model choice shares at period t with multinomial standard errors.

    z = (observed - expected) / sqrt(expected * (1 - expected) / n)
    """
    sub = panel[panel["t"] == int(t)]
    n = int(len(sub))
    if n == 0:
        raise ConfigurationError(f"panel has no rows for period {t}")
    expected = model_choice_shares(solution, prior).loc[int(t)].to_numpy()
    counts = np.bincount(sub["choice"].to_numpy(dtype=int), minlength=solution.n_actions)
    observed = counts / n
    se = np.sqrt(expected * (1.0 - expected) / n)
    with np.errstate(divide="ignore", invalid="ignore"):
        z = np.where(se > 0, (observed - expected) / se, 0.0)
    return pd.DataFrame(
        {
            "action": solution.action_names,
            "n": n,
            "count": counts,
            "observed": observed,
            "expected": expected,
            "se": se,
            "z": z,
        }
    )


def empirical_transitions(
    panel: pd.DataFrame,
    n_states: int,
    n_actions: int,
    id_col: str = "id",
    smoothing: float = 0.0,
) -> np.ndarray:
    """Frequency estimate of P(x'|x,a) from consecutive rows of each agent.

    Returns
    -------
    P : ndarray, shape (A, S, S)
        Rows with no observations (and no smoothing) are left as NaN.
    """
    df = panel.sort_values([id_col, "t"], kind="mergesort")
    ids = df[id_col].to_numpy()
    states = df["state"].to_numpy(dtype=int)
    choices = df["choice"].to_numpy(dtype=int)

    same = ids[1:] == ids[:-1]
    s0 = states[:-1][same]
    a0 = choices[:-1][same]
    s1 = states[1:][same]

    counts = np.zeros((int(n_actions), int(n_states), int(n_states)), dtype=float)
    np.add.at(counts, (a0, s0, s1), 1.0)
    counts = counts + float(smoothing)
    totals = counts.sum(axis=2, keepdims=True)
    with np.errstate(divide="ignore", invalid="ignore"):
        P = np.where(totals > 0, counts / totals, np.nan)
    return P


def wage_moments(panel: pd.DataFrame) -> pd.DataFrame:
    """Count, mean and sd of log wages by period and action; missing wages are skipped."""
    obs = panel[panel["wage"].notna()].copy()
    obs["log_wage"] = np.log(obs["wage"].to_numpy(dtype=float))
    out = (
        obs.groupby(["t", "action"], observed=True)["log_wage"]
        .agg(["count", "mean", "std"])
        .reset_index()
    )
    return out
