"""Finite-horizon logit dynamic discrete choice: backward-induction solver and panel simulator."""

from .configs import ActionSpec, ModelParams, SimulationConfig, default_actions, default_params
from .errors import ConfigurationError, DDCError, NumericalError, SamplingError
from .grid import make_state_grid
from .simulate import initial_state_prior, simulate_agent, simulate_panel
from .softmax import choice_probabilities, logsumexp
from .solver import Solution, solve
from .transitions import build_transition_kernels, gaussian_kernel

__all__ = [
    "ActionSpec",
    "ModelParams",
    "SimulationConfig",
    "default_actions",
    "default_params",
    "DDCError",
    "ConfigurationError",
    "NumericalError",
    "SamplingError",
    "make_state_grid",
    "gaussian_kernel",
    "build_transition_kernels",
    "logsumexp",
    "choice_probabilities",
    "Solution",
    "solve",
    "initial_state_prior",
    "simulate_agent",
    "simulate_panel",
]
