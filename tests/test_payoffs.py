import math

import numpy as np
import pytest

from ddcsim.configs import ActionSpec, default_params
from ddcsim.errors import ConfigurationError
from ddcsim.grid import make_state_grid
from ddcsim.payoffs import (
    crra_utility,
    flow_payoff,
    flow_payoff_matrix,
    lognormal_correction,
    terminal_payoff,
)


def test_crra_log_case_and_power_case():
    assert crra_utility(2.0, 1.0) == pytest.approx(math.log(2.0))
    assert crra_utility(2.0, 2.0) == pytest.approx(0.5)
    assert crra_utility(4.0, 0.5) == pytest.approx(2.0)
    # continuous in rho around the log case
    assert crra_utility(3.0, 1.0 + 1e-8) == pytest.approx(math.log(3.0), abs=1e-6)


@pytest.mark.parametrize("w", [0.0, -1.0, np.nan])
def test_crra_rejects_non_positive_wage(w):
    with pytest.raises(ConfigurationError):
        crra_utility(w, 2.0)
    with pytest.raises(ConfigurationError):
        crra_utility(np.array([1.0, w]), 1.0)


def test_lognormal_correction():
    assert lognormal_correction(0.3, 1.0) == 1.0
    assert lognormal_correction(0.5, 3.0) == pytest.approx(math.exp(0.5 * 0.25 * 4.0))


def test_wage_flow_payoff_by_hand():
    params = default_params(rho=2.0, wage_sd=0.3, trend=0.01, horizon=10)
    act = ActionSpec("work", kind="wage", drift=0.0, wage_return=0.2, intercept=-0.5)
    x = 0.7
    w = math.exp(0.2 * x + 0.01 * 10)
    expected = (w ** (-1.0) - 1.0) / (-1.0) * math.exp(0.5 * 0.09) - 0.5
    # t does not enter the deterministic wage level
    assert flow_payoff(params, act, x, 1) == pytest.approx(expected)
    assert flow_payoff(params, act, x, 7) == pytest.approx(expected)


def test_outside_flow_payoff_is_intercept():
    params = default_params()
    stay = ActionSpec("stay", kind="outside", intercept=0.4)
    grid = make_state_grid(5)
    assert flow_payoff(params, stay, 1.2, 3) == 0.4
    assert np.allclose(flow_payoff(params, stay, grid, 3), 0.4)


def test_terminal_payoff_is_perpetuity():
    params = default_params(interest_rate=0.05)
    work = ActionSpec("work", kind="wage", wage_return=0.1)
    stay = ActionSpec("stay", kind="outside", intercept=0.3)
    x = -0.4
    assert terminal_payoff(params, work, x) == pytest.approx(flow_payoff(params, work, x, params.horizon) / 0.05)
    assert terminal_payoff(params, stay, x) == pytest.approx(0.3 / 0.05)

    flat = default_params(interest_rate=0.05, annuitize_outside_option=False)
    assert terminal_payoff(flat, stay, x) == pytest.approx(0.3)
    assert terminal_payoff(flat, work, x) == pytest.approx(flow_payoff(flat, work, x, flat.horizon) / 0.05)


def test_terminal_divisor_override():
    params = default_params(interest_rate=0.05, terminal_divisor=0.1)
    stay = ActionSpec("stay", kind="outside", intercept=1.0)
    assert terminal_payoff(params, stay, 0.0) == pytest.approx(10.0)


def test_flow_payoff_matrix_layout():
    params = default_params(n_states=7)
    grid = make_state_grid(7)
    M = flow_payoff_matrix(params, grid, 2)
    assert M.shape == (7, params.n_actions)
    for a, act in enumerate(params.actions):
        assert np.allclose(M[:, a], flow_payoff(params, act, grid, 2))
