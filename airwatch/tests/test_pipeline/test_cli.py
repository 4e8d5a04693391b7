"""Tests for CLI commands."""

import json
from pathlib import Path

import httpx
import pytest
import respx
import yaml

from airwatch.cli import main

FIXTURE_DIR = Path(__file__).parent.parent / "fixtures"
BASE_URL = "https://test-waqi.example.com"


@pytest.fixture
def cli_config(tmp_path: Path) -> Path:
    data = {
        "upstream": {"base_url": BASE_URL, "token": "secret", "max_retries": 0},
        "persistence": {"db_path": str(tmp_path / "cli.db")},
        "cities": [{"name": "Sarajevo", "slug": "sarajevo", "station_id": "@10557"}],
    }
    path = tmp_path / "cli.yaml"
    path.write_text(yaml.dump(data))
    return path


@pytest.fixture
def feed_route():
    with open(FIXTURE_DIR / "waqi_feed_sarajevo.json") as f:
        body = json.load(f)
    with respx.mock:
        yield respx.get(f"{BASE_URL}/feed/@10557/", params={"token": "secret"}).mock(
            return_value=httpx.Response(200, json=body)
        )


class TestCLI:
    def test_no_command_returns_1(self, capsys):
        assert main([]) == 1

    def test_config_show(self, cli_config: Path, capsys):
        assert main(["--config", str(cli_config), "config", "show"]) == 0
        out = capsys.readouterr().out
        assert "live_ttl_minutes" in out
        assert "sarajevo" in out

    def test_config_get(self, config_yaml_path: Path, capsys):
        assert main(["--config", str(config_yaml_path), "config", "get", "cache.live_ttl_minutes"]) == 0
        assert capsys.readouterr().out.strip() == "15"

    def test_config_get_unknown_key(self, config_yaml_path: Path, capsys):
        assert main(["--config", str(config_yaml_path), "config", "get", "cache.nope"]) == 1

    def test_refresh(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "refresh"]) == 0
        assert "1 ok, 0 failed" in capsys.readouterr().out
        assert feed_route.call_count == 1

    def test_refresh_failure_exit_code(self, cli_config: Path, capsys):
        with respx.mock:
            respx.get(f"{BASE_URL}/feed/@10557/", params={"token": "secret"}).mock(
                return_value=httpx.Response(500)
            )
            assert main(["--config", str(cli_config), "refresh"]) == 1
        assert "FAILED sarajevo" in capsys.readouterr().out

    def test_live(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "live", "Sarajevo"]) == 0
        out = capsys.readouterr().out
        assert "AQI 158 (Unhealthy)" in out

    def test_live_json(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "--json", "live", "sarajevo"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["index"] == 158
        assert data["color"] == "#FF0000"

    def test_forecast(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "forecast", "sarajevo"]) == 0
        assert "Forecast for sarajevo" in capsys.readouterr().out

    def test_timeline(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "timeline", "sarajevo", "--days", "3"]) == 0
        out = capsys.readouterr().out
        assert "Last 3 days" in out
        assert out.count("AQI 158") == 3

    def test_groups(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "groups", "sarajevo"]) == 0
        out = capsys.readouterr().out
        assert "athletes" in out and "asthmatics" in out

    def test_unknown_city(self, cli_config: Path, capsys):
        assert main(["--config", str(cli_config), "live", "atlantis"]) == 1
        assert "Error" in capsys.readouterr().out

    def test_complete(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "complete", "Sarajevo"]) == 0
        out = capsys.readouterr().out
        assert "AQI 158 (Unhealthy)" in out
        assert "Forecast for sarajevo" in out
        assert feed_route.call_count == 1

    def test_history_after_refresh(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "refresh"]) == 0
        capsys.readouterr()
        assert main(["--config", str(cli_config), "history", "Sarajevo", "--days", "2"]) == 0
        out = capsys.readouterr().out
        assert "sarajevo: 1 snapshots in the last 2 days" in out
        assert "AQI 158" in out

    def test_history_days_out_of_range(self, cli_config: Path, capsys):
        assert main(["--config", str(cli_config), "history", "sarajevo", "--days", "45"]) == 1
        assert "Error: days must be between 1 and 30" in capsys.readouterr().out

    def test_compare_defaults_to_enabled_cities(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "compare"]) == 0
        out = capsys.readouterr().out
        assert "Compared 1 cities" in out
        assert "AQI 158 Unhealthy" in out

    def test_compare_json_marks_unknown_city(self, cli_config: Path, feed_route, capsys):
        assert main(["--config", str(cli_config), "--json", "compare", "sarajevo", "atlantis"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [e["index"] for e in data["entries"]] == [158, None]
        assert data["entries"][1]["category"] == "No Data"
