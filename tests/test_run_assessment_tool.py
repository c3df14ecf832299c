"""
Tests for the run_assessment command-line tool.
"""

from __future__ import annotations

import json
import sys

import pytest

from marketing_engine.pipeline import analyze
from marketing_engine.tools.run_assessment import format_summary, load_input, main


def _write(tmp_path, payload, name="answers.json"):
    path = tmp_path / name
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


# --- Input ---


def test_load_flat_answers(tmp_path, struggling_retail):
    answers, context = load_input(_write(tmp_path, struggling_retail))
    assert answers == struggling_retail
    assert context == {}


def test_load_answers_with_context(tmp_path, healthy_saas):
    answers, context = load_input(_write(tmp_path, {"answers": healthy_saas, "context": {"sector": "saas"}}))
    assert answers == healthy_saas
    assert context == {"sector": "saas"}


def test_load_rejects_non_object(tmp_path):
    with pytest.raises(ValueError):
        load_input(_write(tmp_path, [1, 2, 3]))


# --- Output ---


def test_format_summary(struggling_retail):
    text = format_summary(analyze(struggling_retail).to_dict())
    assert "Plan: emergency" in text
    assert "Alerts:" in text
    assert "#1 " in text


def test_main_summary(tmp_path, monkeypatch, capsys, struggling_retail):
    path = _write(tmp_path, struggling_retail)
    monkeypatch.setattr(sys, "argv", ["run_assessment", str(path), "--sector", "retail", "--summary"])
    assert main() == 0
    assert "Plan: emergency" in capsys.readouterr().out


def test_main_bad_input(tmp_path, monkeypatch):
    monkeypatch.setattr(sys, "argv", ["run_assessment", str(tmp_path / "nope.json")])
    assert main() == 2


def test_main_saves_session(tmp_path, monkeypatch, results_store, healthy_saas):
    path = _write(tmp_path, healthy_saas)
    monkeypatch.setattr(sys, "argv", ["run_assessment", str(path), "--session-id", "cli-1", "--summary"])
    assert main() == 0
    assert results_store.load_bundle("cli-1")["scores"]["overall"] == 85


def test_main_prints_bundle_json(tmp_path, monkeypatch, capsys, healthy_saas):
    path = _write(tmp_path, {"answers": healthy_saas, "context": {"sector": "saas"}})
    monkeypatch.setattr(sys, "argv", ["run_assessment", str(path)])
    assert main() == 0
    data = json.loads(capsys.readouterr().out)
    assert data["scores"]["overall"] == 85
    assert data["context"]["sector"] == "saas"
