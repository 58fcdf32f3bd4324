"""Tests for the command-line interface."""
from __future__ import annotations

import json

import pytest

from trademind import cli
from trademind.services.llm import MarketGateway


@pytest.fixture
def history_path(monkeypatch, tmp_path):
    path = tmp_path / "cli_storage.json"
    monkeypatch.setenv("TRADEMIND_HISTORY_PATH", str(path))
    return path


@pytest.fixture
def fake_gateway(monkeypatch, fake_client):
    gateway = MarketGateway(fake_client)
    monkeypatch.setattr(cli, "create_gateway", lambda config=None: gateway)
    return gateway


class TestCli:

    def test_analyze_records_history(self, history_path, fake_gateway, fake_client, analysis_payload, capsys):
        fake_client.responses.queue(json.dumps(analysis_payload))

        assert cli.main(["analyze", "nvda"]) == 0

        out = capsys.readouterr().out
        assert "=== NVDA: BUY ===" in out
        stored = json.loads(history_path.read_text())["tradeHistory"]
        assert stored[0]["ticker"] == "NVDA"
        assert stored[0]["confidenceScore"] == 82

    def test_analyze_failure_exits_nonzero(self, history_path, fake_gateway, fake_client, capsys):
        fake_client.responses.queue("")

        assert cli.main(["analyze", "NVDA"]) == 1

        err = capsys.readouterr().err
        assert "Analysis failed" in err
        assert "EmptyResponseError" in err
        assert not history_path.exists()

    def test_history_list_empty(self, history_path, capsys):
        assert cli.main(["history"]) == 0
        assert "No past analysis yet." in capsys.readouterr().out

    def test_history_show_unknown(self, history_path, capsys):
        assert cli.main(["history", "show", "missing"]) == 1

    def test_history_clear(self, history_path, fake_gateway, fake_client, analysis_payload, capsys):
        fake_client.responses.queue(json.dumps(analysis_payload))
        cli.main(["analyze", "NVDA"])

        assert cli.main(["history", "clear", "--yes"]) == 0
        assert "tradeHistory" not in json.loads(history_path.read_text())

    def test_lookup(self, fake_gateway, fake_client, capsys):
        fake_client.responses.queue("A bet that a price will fall.")
        assert cli.main(["lookup", "short selling"]) == 0
        assert "A bet that a price will fall." in capsys.readouterr().out
