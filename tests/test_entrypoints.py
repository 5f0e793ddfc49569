from __future__ import annotations

import importlib.util
import sys
from pathlib import Path

import pytest


def _load_script_module(script_name: str):
    root = Path(__file__).resolve().parents[1]
    script_path = root / "scripts" / script_name
    spec = importlib.util.spec_from_file_location(script_name.replace(".py", ""), script_path)
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Unable to load script module: {script_path}")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


def test_run_tme_report_entrypoint_calls_pipeline(monkeypatch):
    module = _load_script_module("run_tme_report.py")
    called: list[str] = []

    def _fake_run(config_path: str) -> None:
        called.append(config_path)

    monkeypatch.setattr(module, "run_tme_report", _fake_run)
    monkeypatch.setattr(sys, "argv", ["run_tme_report.py", "--config", "tiny.json"])

    rc = module.main()
    assert rc == 0
    assert called == ["tiny.json"]


def test_run_tme_report_entrypoint_requires_config():
    module = _load_script_module("run_tme_report.py")
    with pytest.raises(SystemExit):
        module.parse_args([])
