# fintrack/config.py
from __future__ import annotations

import os
from pathlib import Path
from typing import Dict

import yaml

DEFAULT_CONFIG: Dict[str, object] = {
    "db_path": "fintrack.db",
    "rules_file": "recurring.yaml",
    "manual_transactions_file": None,
    "output_dir": "data",
    "output_modules": {
        "csv": "fintrack.outputs.csv_output.CSVOutput",
    },
}


def _merge_defaults(current: Dict[str, object], defaults: Dict[str, object]) -> Dict[str, object]:
    """Merge missing default keys into the current config recursively."""
    merged = dict(current)
    for key, value in defaults.items():
        if key not in merged:
            merged[key] = value
        elif isinstance(value, dict) and isinstance(merged[key], dict):
            merged[key] = _merge_defaults(merged[key], value)
    return merged


def load_config(path: str | Path | None = None) -> Dict[str, object]:
    """Read a YAML config and fill in defaults; FINTRACK_DB overrides db_path."""
    data: Dict[str, object] = {}
    if path and Path(path).exists():
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    config = _merge_defaults(data, DEFAULT_CONFIG)
    env_db = os.getenv("FINTRACK_DB")
    if env_db:
        config["db_path"] = env_db
    return config
