from __future__ import annotations

import json
import os

import pandas as pd


def ensure_dir(outdir: str):
    os.makedirs(outdir, exist_ok=True)


def save_csv_file(path: str, df: pd.DataFrame, index: bool = False):
    """Save a DataFrame to an explicit file path; missing values are written as empty cells."""
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    df.to_csv(path, index=index)


def save_json_file(path: str, obj):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, ensure_ascii=False, indent=2, default=str)


def load_json_file(path: str):
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
