# tests/cli/test_cli.py
import json

import pytest

from vendorscope.cli import build_parser, main
from vendorscope.data.loader import DatasetLoader


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    for name in ("VENDORSCOPE_API_KEY", "VENDORSCOPE_DATA_URL", "VENDORSCOPE_SEED"):
        monkeypatch.delenv(name, raising=False)
    path = tmp_path / "vendors.json"
    path.write_text(json.dumps([
        {
            "vendor_name": "Acme Paint",
            "geography": "Wyoming",
            "pricing": "$30/gal",
            "average_rating": 4.2,
        },
        {
            "vendor_name": "Casper Coatings",
            "geography": "Casper, Wyoming",
            "pricing": "$19.50/gal",
            "average_rating": 3.8,
        },
    ]), encoding="utf-8")
    return str(path)


class TestParser:
    def test_search_options(self):
        args = build_parser().parse_args([
            "--source", "a.json", "--source", "b.json",
            "search", "--max-price", "35", "--compliant-only",
        ])
        assert args.source == ["a.json", "b.json"]
        assert args.max_price == 35.0
        assert args.compliant_only is True

    def test_query_commands(self):
        args = build_parser().parse_args(["report", "best paint vendors"])
        assert args.command == "report"
        assert args.query == "best paint vendors"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    def test_summary(self, workspace, capsys):
        assert main(["--source", workspace, "summary"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert data["totalVendors"] == 2
        assert data["averageRating"] == pytest.approx(4.0)
        assert data["topLocations"][0]["location"] == "Wyoming"

    def test_search(self, workspace, capsys):
        assert main(["--source", workspace, "search", "--max-price", "20"]) == 0
        data = json.loads(capsys.readouterr().out)
        assert [v["vendor_name"] for v in data] == ["Casper Coatings"]

    def test_seed_is_deterministic(self, workspace, capsys):
        main(["--source", workspace, "--seed", "4", "search"])
        first = capsys.readouterr().out
        main(["--source", workspace, "--seed", "4", "search"])
        assert capsys.readouterr().out == first

    def test_missing_primary_source(self, tmp_path, workspace):
        assert main(["--source", str(tmp_path / "missing.json"), "summary"]) == 1

    @pytest.mark.parametrize("command", ["analyze", "compliance", "report"])
    def test_missing_api_key_fails_before_loading(self, workspace, monkeypatch, caplog, command):
        async def _load_not_expected(self):
            raise AssertionError("datasets fetched before the credential check")

        monkeypatch.setattr(DatasetLoader, "load", _load_not_expected)
        assert main(["--source", workspace, command, "paint"]) == 1
        assert "API key" in caplog.text
