from __future__ import annotations

import argparse
import logging
import os
import sys
import time
from dataclasses import replace
from typing import Any, Dict, List

import numpy as np

from .configs import ModelParams, SimulationConfig, default_params
from .moments import ccp_consistency, choice_shares, model_choice_shares, wage_moments
from .report import ensure_dir, load_json_file, save_csv_file, save_json_file
from .simulate import simulate_panel
from .solver import solve

logger = logging.getLogger("ddcsim.runner")


def parse_args(argv: List[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="ddcsim.runner")

    p.add_argument("--params", type=str, default=None, help="JSON file with ModelParams fields")
    p.add_argument("--horizon", type=int, default=None, help="Number of periods T")
    p.add_argument("--states", type=int, default=None, help="Grid size N")
    p.add_argument("--rho", type=float, default=None, help="CRRA risk aversion")
    p.add_argument("--interest-rate", type=float, default=None)
    p.add_argument("--no-annuitize-outside", action="store_true",
                   help="Do not divide the outside option's terminal payoff by the interest rate")

    p.add_argument("--agents", type=int, default=1000, help="Number of simulated agents")
    p.add_argument("--seed", type=int, default=0)
    p.add_argument("--out", type=str, default="ddc_outputs", help="Output root directory")
    p.add_argument("--log-level", type=str, default="INFO")

    return p.parse_args(argv)


def params_from_args(args: argparse.Namespace) -> ModelParams:
    params = ModelParams.from_dict(load_json_file(args.params)) if args.params else default_params()
    overrides: Dict[str, Any] = {}
    if args.horizon is not None:
        overrides["horizon"] = int(args.horizon)
    if args.states is not None:
        overrides["n_states"] = int(args.states)
    if args.rho is not None:
        overrides["rho"] = float(args.rho)
    if args.interest_rate is not None:
        overrides["interest_rate"] = float(args.interest_rate)
    if args.no_annuitize_outside:
        overrides["annuitize_outside_option"] = False
    return replace(params, **overrides).validate()


def run_pipeline(params: ModelParams, sim: SimulationConfig) -> str:
    """Solve, simulate and write every artifact into a fresh run directory."""
    sim.validate()
    run_id = f"run_{time.strftime('%Y%m%d_%H%M%S')}_seed{sim.seed}"
    run_root = os.path.join(sim.outdir, run_id)
    ensure_dir(run_root)

    solution = solve(params)
    panel = simulate_panel(solution, sim.n_agents, seed=sim.seed)

    save_json_file(os.path.join(run_root, "params.json"), params.to_dict())
    save_csv_file(os.path.join(run_root, "solution.csv"), solution.to_frame())
    save_csv_file(os.path.join(run_root, "panel.csv"), panel)

    shares = choice_shares(panel, solution.n_actions)
    shares.columns = solution.action_names
    save_csv_file(os.path.join(run_root, "choice_shares.csv"), shares, index=True)
    save_csv_file(os.path.join(run_root, "wage_moments.csv"), wage_moments(panel))

    model = model_choice_shares(solution)
    model.columns = solution.action_names
    save_csv_file(os.path.join(run_root, "model_choice_shares.csv"), model, index=True)

    check = ccp_consistency(solution, panel, t=1)
    summary = {
        "run_id": run_id,
        "n_agents": int(sim.n_agents),
        "seed": int(sim.seed),
        "horizon": solution.horizon,
        "n_states": solution.n_states,
        "actions": solution.action_names,
        "V1_mean": float(np.mean(solution.v(1))),
        "missing_wage_share": float(panel["wage"].isna().mean()),
        "period1_max_abs_z": float(np.max(np.abs(check["z"].to_numpy()))),
    }
    save_json_file(os.path.join(run_root, "summary.json"), summary)
    logger.info("wrote outputs to %s", run_root)
    return run_root


def main(argv: List[str] | None = None) -> None:
    args = parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    params = params_from_args(args)
    sim = SimulationConfig(n_agents=args.agents, seed=args.seed, outdir=args.out)
    try:
        run_root = run_pipeline(params, sim)
    except Exception:
        logger.exception("run failed")
        raise
    print(run_root)


if __name__ == "__main__":
    main()
