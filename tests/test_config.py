from fintrack import config as config_module
from fintrack.config import DEFAULT_CONFIG, load_config


def test_missing_config_uses_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("FINTRACK_DB", raising=False)
    cfg = load_config(tmp_path / "nope.yaml")
    assert cfg == DEFAULT_CONFIG
    assert load_config(None) == DEFAULT_CONFIG


def test_config_merges_nested_defaults(tmp_path, monkeypatch):
    monkeypatch.delenv("FINTRACK_DB", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        """\
db_path: custom.db
output_modules:
  json: somewhere.JSONOutput
"""
    )
    cfg = load_config(path)
    assert cfg["db_path"] == "custom.db"
    assert cfg["rules_file"] == "recurring.yaml"
    assert cfg["output_modules"]["csv"] == "fintrack.outputs.csv_output.CSVOutput"
    assert cfg["output_modules"]["json"] == "somewhere.JSONOutput"


def test_env_overrides_db_path(tmp_path, monkeypatch):
    monkeypatch.setenv("FINTRACK_DB", str(tmp_path / "env.db"))
    cfg = config_module.load_config(None)
    assert cfg["db_path"] == str(tmp_path / "env.db")
