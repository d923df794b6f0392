import json
import os
import pathlib
import sys

ROOT = pathlib.Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import pandas as pd


def test_import_public_api():
    import ddcsim

    assert callable(ddcsim.solve)
    assert callable(ddcsim.simulate_panel)
    assert issubclass(ddcsim.ConfigurationError, ValueError)


def test_pipeline_writes_artifacts(tmp_path):
    from ddcsim.configs import SimulationConfig, default_params
    from ddcsim.runner import run_pipeline

    params = default_params(horizon=3, n_states=8)
    run_root = run_pipeline(params, SimulationConfig(n_agents=40, seed=1, outdir=str(tmp_path)))

    for name in ["params.json", "solution.csv", "panel.csv", "choice_shares.csv",
                 "model_choice_shares.csv", "wage_moments.csv", "summary.json"]:
        assert os.path.exists(os.path.join(run_root, name)), name

    panel = pd.read_csv(os.path.join(run_root, "panel.csv"))
    assert len(panel) == 40 * 3
    assert panel.loc[panel["action"] == "stay", "wage"].isna().all()

    with open(os.path.join(run_root, "summary.json"), encoding="utf-8") as f:
        summary = json.load(f)
    assert summary["horizon"] == 3
    assert summary["actions"] == ["stay", "sector1", "sector2"]


def test_params_json_round_trip(tmp_path):
    from ddcsim.configs import ModelParams, default_params
    from ddcsim.report import load_json_file, save_json_file

    params = default_params(rho=1.0, terminal_divisor=0.1)
    path = os.path.join(str(tmp_path), "params.json")
    save_json_file(path, params.to_dict())
    assert ModelParams.from_dict(load_json_file(path)) == params


def test_cli_main(tmp_path, capsys):
    from ddcsim.runner import main

    main(["--horizon", "2", "--states", "6", "--agents", "10", "--seed", "4",
          "--no-annuitize-outside", "--out", str(tmp_path)])
    run_root = capsys.readouterr().out.strip().splitlines()[-1]
    with open(os.path.join(run_root, "params.json"), encoding="utf-8") as f:
        saved = json.load(f)
    assert saved["annuitize_outside_option"] is False
    assert saved["n_states"] == 6
