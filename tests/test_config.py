"""Tests for runtime configuration loading."""

import json

from xnr.config import DEFAULTS, load_runtime_config


class TestLoadRuntimeConfig:
    def test_defaults(self, tmp_path):
        assert load_runtime_config(tmp_path) == DEFAULTS

    def test_config_file_overrides(self, tmp_path):
        (tmp_path / ".xnr.json").write_text(json.dumps({"paths": {"build_dir": "dist"}, "jsx": {"pragma": "h"}}))
        cfg = load_runtime_config(tmp_path)
        assert cfg["paths"]["build_dir"] == "dist"
        assert cfg["paths"]["run_dir"] == DEFAULTS["paths"]["run_dir"]
        assert cfg["jsx"]["pragma"] == "h"

    def test_unknown_keys_and_wrong_types_ignored(self, tmp_path):
        (tmp_path / ".xnr.json").write_text(json.dumps({"paths": {"build_dir": 3, "extra": "x"}, "other": {}}))
        cfg = load_runtime_config(tmp_path)
        assert cfg == DEFAULTS

    def test_invalid_json_falls_back(self, tmp_path):
        (tmp_path / ".xnr.json").write_text("{not json")
        assert load_runtime_config(tmp_path) == DEFAULTS

    def test_environment_wins(self, tmp_path, monkeypatch):
        (tmp_path / ".xnr.json").write_text(json.dumps({"runtime": {"node": "node18"}}))
        monkeypatch.setenv("XNR_RUNTIME_NODE", "/opt/node/bin/node")
        assert load_runtime_config(tmp_path)["runtime"]["node"] == "/opt/node/bin/node"

    def test_empty_environment_value_ignored(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XNR_PATHS_RUN_DIR", "  ")
        assert load_runtime_config(tmp_path)["paths"]["run_dir"] == DEFAULTS["paths"]["run_dir"]

    def test_defaults_not_mutated(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XNR_JSX_PRAGMA", "h")
        load_runtime_config(tmp_path)
        assert DEFAULTS["jsx"]["pragma"] == "React.createElement"
