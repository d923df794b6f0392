from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple

from .errors import ConfigurationError

OUTSIDE = "outside"
WAGE = "wage"
ACTION_KINDS = (OUTSIDE, WAGE)


@dataclass(frozen=True)
class ActionSpec:
    """One period choice.

    kind:
      - "outside": flat payoff equal to `intercept`, no wage observed
      - "wage": CRRA utility of exp(wage_return * state + trend * T) plus `intercept`
    drift:
      mean shift of the latent state when this action is chosen
    """

    name: str
    kind: str = WAGE
    drift: float = 0.0
    wage_return: float = 0.0
    intercept: float = 0.0

    @property
    def pays_wage(self) -> bool:
        return self.kind == WAGE


def default_actions() -> Tuple[ActionSpec, ...]:
    return (
        # staying out depreciates human capital
        ActionSpec("stay", kind=OUTSIDE, drift=-0.2, intercept=0.0),
        ActionSpec("sector1", kind=WAGE, drift=0.0, wage_return=0.10, intercept=0.0),
        ActionSpec("sector2", kind=WAGE, drift=1.0, wage_return=0.25, intercept=-0.5),
    )


@dataclass(frozen=True)
class ModelParams:
    horizon: int = 10
    n_states: int = 50
    interest_rate: float = 0.05
    rho: float = 2.0
    wage_sd: float = 0.3
    transition_sd: float = 0.2
    trend: float = 0.01
    # None => divide the terminal payoff by interest_rate (perpetuity)
    terminal_divisor: Optional[float] = None
    annuitize_outside_option: bool = True
    actions: Tuple[ActionSpec, ...] = field(default_factory=default_actions)

    @property
    def discount(self) -> float:
        return 1.0 / (1.0 + float(self.interest_rate))

    @property
    def annuity_divisor(self) -> float:
        if self.terminal_divisor is None:
            return float(self.interest_rate)
        return float(self.terminal_divisor)

    @property
    def n_actions(self) -> int:
        return len(self.actions)

    @property
    def action_names(self) -> List[str]:
        return [a.name for a in self.actions]

    @property
    def drifts(self) -> List[float]:
        return [float(a.drift) for a in self.actions]

    def action_index(self, name: str) -> int:
        for i, a in enumerate(self.actions):
            if a.name == name:
                return i
        raise KeyError(f"Unknown action: {name!r}. Available: {self.action_names}")

    def validate(self) -> "ModelParams":
        """Raise ConfigurationError on the first invalid field; return self otherwise."""
        if int(self.horizon) < 1:
            raise ConfigurationError(f"horizon must be >= 1, got {self.horizon}")
        if int(self.n_states) < 2:
            raise ConfigurationError(f"n_states must be >= 2, got {self.n_states}")
        if not (math.isfinite(self.interest_rate) and self.interest_rate > 0):
            raise ConfigurationError(f"interest_rate must be positive, got {self.interest_rate}")
        if not (math.isfinite(self.rho) and self.rho >= 0):
            raise ConfigurationError(f"rho must be a finite non-negative number, got {self.rho}")
        if not (math.isfinite(self.wage_sd) and self.wage_sd >= 0):
            raise ConfigurationError(f"wage_sd must be >= 0, got {self.wage_sd}")
        if not (math.isfinite(self.transition_sd) and self.transition_sd > 0):
            raise ConfigurationError(f"transition_sd must be positive, got {self.transition_sd}")
        if not math.isfinite(self.trend):
            raise ConfigurationError("trend must be finite")
        div = self.annuity_divisor
        if not math.isfinite(div) or div == 0.0:
            raise ConfigurationError(f"terminal divisor must be finite and non-zero, got {div}")

        if len(self.actions) == 0:
            raise ConfigurationError("at least one action is required")
        names = self.action_names
        if len(set(names)) != len(names):
            raise ConfigurationError(f"duplicate action names: {names}")
        for a in self.actions:
            if a.kind not in ACTION_KINDS:
                raise ConfigurationError(f"action {a.name!r}: unknown kind {a.kind!r}")
            for label in ("drift", "wage_return", "intercept"):
                if not math.isfinite(float(getattr(a, label))):
                    raise ConfigurationError(f"action {a.name!r}: {label} must be finite")
        return self

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["actions"] = [asdict(a) for a in self.actions]
        d["discount"] = self.discount
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelParams":
        d = dict(d)
        d.pop("discount", None)
        acts = d.pop("actions", None)
        if acts is not None:
            d["actions"] = tuple(a if isinstance(a, ActionSpec) else ActionSpec(**a) for a in acts)
        return cls(**d)


def default_params(**overrides: Any) -> ModelParams:
    return replace(ModelParams(), **overrides).validate()


@dataclass
class SimulationConfig:
    n_agents: int = 1000
    seed: int = 0
    outdir: str = "ddc_outputs"

    def validate(self) -> "SimulationConfig":
        if int(self.n_agents) < 1:
            raise ConfigurationError(f"n_agents must be >= 1, got {self.n_agents}")
        return self
