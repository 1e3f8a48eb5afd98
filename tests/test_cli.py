"""Tests for the command line entry point."""

import json
import logging

import pytest

from portfolio_session.cli import load_portfolio_file, main

PORTFOLIO_YAML = """
new_money: 1000
assets:
  - symbol: QQQ
    current_value: 1708.80
    target_percentage: 0.5
  - symbol: NVDA
    current_value: 533.22
    target_percentage: 0.2
  - symbol: SMH
    current_value: 585.20
    target_percentage: 0.1
  - symbol: VEU
    current_value: 0
    target_percentage: 0.1
  - symbol: BINANCE:BTCUSDT
    current_value: 197.00
    target_percentage: 0.1
"""


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put pytest's handlers back afterwards."""
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


@pytest.fixture
def portfolio_file(tmp_path):
    path = tmp_path / "portfolio.yaml"
    path.write_text(PORTFOLIO_YAML)
    return path


class TestLoadPortfolioFile:
    """YAML and JSON portfolio definitions."""

    def test_snake_case_yaml(self, portfolio_file):
        session = load_portfolio_file(portfolio_file)
        assert len(session.assets) == 5
        assert session.new_money == 1000
        assert session.enable_selling is False

    def test_camel_case_json(self, tmp_path):
        path = tmp_path / "portfolio.json"
        path.write_text(json.dumps({
            "newMoney": 50,
            "enableSelling": True,
            "assets": [
                {"symbol": "A", "currentValue": 900, "targetPercentage": 0.5, "noSell": True},
                {"symbol": "B", "currentValue": 100, "targetPercentage": 0.5},
            ],
        }))

        session = load_portfolio_file(path)
        assert session.new_money == 50
        assert session.enable_selling is True
        assert session.assets[0].no_sell is True

    def test_missing_assets(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("new_money: 10\n")
        with pytest.raises(ValueError, match="must define an 'assets' list"):
            load_portfolio_file(path)

    def test_malformed_yaml(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("assets: [\n  {symbol: A\n")
        with pytest.raises(ValueError, match="Failed to parse"):
            load_portfolio_file(path)

    def test_new_money_out_of_range(self, tmp_path):
        path = tmp_path / "rich.yaml"
        path.write_text(PORTFOLIO_YAML.replace("new_money: 1000", "new_money: 5000000"))
        with pytest.raises(ValueError, match="New money must be between 0 and 1,000,000"):
            load_portfolio_file(path)


class TestCalculateCommand:
    """calculate subcommand."""

    def test_table_output(self, portfolio_file, capsys):
        assert main(["calculate", str(portfolio_file)]) == 0

        out = capsys.readouterr().out
        assert "Deploying $1,000.00" in out
        assert "VEU" in out
        assert "402.42" in out
        assert "BTC " in out
        assert "1,000.00" in out.splitlines()[-1]

    def test_json_output(self, portfolio_file, capsys):
        assert main(["calculate", str(portfolio_file), "--json"]) == 0

        results = json.loads(capsys.readouterr().out)
        assert [r["amountToAdd"] for r in results] == [120.54, 271.62, 0.0, 402.42, 205.42]

    def test_money_override_and_selling(self, portfolio_file, capsys):
        assert main(["calculate", str(portfolio_file), "--money", "0", "--sell", "--json"]) == 0

        results = json.loads(capsys.readouterr().out)
        assert sum(r["amountToAdd"] for r in results) == pytest.approx(0.0, abs=1e-6)
        assert results[0]["amountToAdd"] < 0

    def test_nothing_to_allocate(self, portfolio_file, capsys):
        assert main(["calculate", str(portfolio_file), "--money", "0"]) == 0
        assert "Nothing to allocate" in capsys.readouterr().out

    def test_invalid_portfolio(self, tmp_path, capsys):
        path = tmp_path / "bad.yaml"
        path.write_text("assets:\n  - {symbol: A, current_value: 1, target_percentage: 0.5}\n")

        assert main(["calculate", str(path)]) == 1
        err = capsys.readouterr().err
        assert "error: Portfolio must contain at least 2 assets" in err
        assert "error: Target percentages must sum to 100% (currently 50.0%)" in err

    def test_missing_file(self, tmp_path, capsys):
        assert main(["calculate", str(tmp_path / "missing.yaml")]) == 1
        assert "error:" in capsys.readouterr().err

    def test_missing_config_file(self, portfolio_file, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yaml"), "calculate", str(portfolio_file)]) == 1
        assert "Configuration file not found" in capsys.readouterr().err


class TestValidateCommand:
    """validate subcommand."""

    def test_valid(self, portfolio_file, capsys):
        assert main(["validate", str(portfolio_file)]) == 0
        assert "Portfolio is valid (5 assets, 100.0% allocated)" in capsys.readouterr().out

    def test_zero_target_needs_sell_flag(self, tmp_path):
        path = tmp_path / "zero.yaml"
        path.write_text(
            "assets:\n"
            "  - {symbol: A, current_value: 100, target_percentage: 0}\n"
            "  - {symbol: B, current_value: 100, target_percentage: 1}\n"
        )

        assert main(["validate", str(path)]) == 1
        assert main(["validate", str(path), "--sell"]) == 0


class TestShareCommands:
    """share and open subcommands."""

    def test_share_then_open(self, portfolio_file, capsys):
        assert main(["share", str(portfolio_file), "--base-url", "https://example.com/"]) == 0
        url = capsys.readouterr().out.strip()
        assert url.startswith("https://example.com/?p=")

        assert main(["open", url, "--json"]) == 0
        results = json.loads(capsys.readouterr().out)
        assert [r["symbol"] for r in results] == ["QQQ", "NVDA", "SMH", "VEU", "BINANCE:BTCUSDT"]
        assert results[3]["amountToAdd"] == 402.42


class TestInputErrors:
    """Unreadable inputs exit with status 1 instead of a traceback."""

    def test_malformed_portfolio_file(self, tmp_path, capsys):
        path = tmp_path / "broken.yaml"
        path.write_text("assets: [\n  {symbol: A\n")

        assert main(["validate", str(path)]) == 1
        assert "error: Failed to parse" in capsys.readouterr().err

    def test_new_money_from_file_is_bounded(self, portfolio_file, capsys):
        portfolio_file.write_text(PORTFOLIO_YAML.replace("new_money: 1000", "new_money: 5000000"))

        assert main(["calculate", str(portfolio_file)]) == 1
        assert "New money must be between" in capsys.readouterr().err

    def test_malformed_config_file(self, portfolio_file, tmp_path, capsys):
        config_path = tmp_path / "config.yaml"
        config_path.write_text("quotes: [\n")

        assert main(["--config", str(config_path), "validate", str(portfolio_file)]) == 1
        assert "error:" in capsys.readouterr().err
