import numpy as np
import pytest
from scipy import stats

from ddcsim.errors import ConfigurationError, SamplingError
from ddcsim.grid import make_state_grid
from ddcsim.transitions import build_transition_kernels, gaussian_kernel, validate_stochastic_rows


def test_grid_is_normal_quantiles_and_increasing():
    N = 10
    grid = make_state_grid(N)
    assert grid.shape == (N,)
    assert np.all(np.diff(grid) > 0)
    expected = stats.norm.ppf(np.arange(1, N + 1) / (N + 1))
    assert np.allclose(grid, expected)
    # quantiles of a symmetric distribution
    assert np.allclose(grid, -grid[::-1])
    assert not grid.flags.writeable


def test_grid_single_point_and_invalid_size():
    assert np.allclose(make_state_grid(1), [0.0])
    with pytest.raises(ConfigurationError):
        make_state_grid(0)


def test_kernel_rows_sum_to_one_for_every_action():
    grid = make_state_grid(10)
    P = build_transition_kernels(grid, [-0.2, 0.0, 1.0], 0.2)
    assert P.shape == (3, 10, 10)
    assert np.all(P >= 0)
    assert np.max(np.abs(P.sum(axis=2) - 1.0)) < 1e-9
    assert not P.flags.writeable


def test_drift_moves_mass_in_its_direction():
    grid = make_state_grid(20)
    P = build_transition_kernels(grid, [-0.2, 0.0, 1.0], 0.2)
    mid = 10
    mean_next = P[:, mid, :] @ grid
    assert mean_next[0] < mean_next[1] < mean_next[2]
    assert mean_next[2] > grid[mid]


def test_kernel_matches_normalized_density():
    grid = make_state_grid(6)
    K = gaussian_kernel(grid, 0.3, 0.5)
    i = 2
    raw = stats.norm.pdf(grid, loc=grid[i] + 0.3, scale=0.5)
    assert np.allclose(K[i], raw / raw.sum())


@pytest.mark.parametrize("sd", [0.0, -0.1, np.inf, np.nan])
def test_non_positive_dispersion_is_rejected(sd):
    with pytest.raises(ConfigurationError):
        gaussian_kernel(make_state_grid(5), 0.0, sd)


def test_zero_mass_row_is_fatal():
    # every grid point is thousands of sds away from x + drift
    with pytest.raises(ConfigurationError):
        gaussian_kernel(make_state_grid(10), 100.0, 0.01)


def test_validate_stochastic_rows():
    validate_stochastic_rows(np.array([[0.25, 0.75], [1.0, 0.0]]))
    with pytest.raises(SamplingError):
        validate_stochastic_rows(np.array([[0.5, 0.4]]))
    with pytest.raises(SamplingError):
        validate_stochastic_rows(np.array([[np.nan, 1.0]]))
    with pytest.raises(SamplingError):
        validate_stochastic_rows(np.array([[1.5, -0.5]]))
