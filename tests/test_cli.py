import pytest
import yaml
from click.testing import CliRunner

from finance_tracker.cli import main


@pytest.fixture
def cli(tmp_path):
    config_path = tmp_path / "config.yaml"
    config_path.write_text(
        yaml.safe_dump(
            {
                "database_url": f"sqlite:///{tmp_path / 'cli.db'}",
                "settings_file": str(tmp_path / "settings.yaml"),
            }
        )
    )
    runner = CliRunner()

    def invoke(*args):
        return runner.invoke(main, ["--config", str(config_path), *args])

    return invoke


def test_import_csv_then_list_and_summary(cli, tmp_path):
    csv_file = tmp_path / "bank.csv"
    csv_file.write_text(
        "date,description,amount\n"
        "2025-05-01,ACME Payroll,1000\n"
        "2025-05-02,Starbucks Cafe,-40\n"
        "2025-05-03,Uber ride,-10\n"
    )

    result = cli("import-csv", str(csv_file))
    assert result.exit_code == 0, result.output
    assert "Imported 3 transaction(s)" in result.output

    listed = cli("list", "--type", "expense")
    assert listed.exit_code == 0, listed.output
    assert "Starbucks Cafe" in listed.output
    assert "ACME Payroll" not in listed.output
    assert "2 transaction(s)." in listed.output

    searched = cli("list", "--search", "uber", "--start", "2025-05-03")
    assert "1 transaction(s)." in searched.output

    summary = cli("summary")
    assert summary.exit_code == 0, summary.output
    assert "Income:" in summary.output and "1000.00 EUR" in summary.output
    assert "Balance:" in summary.output and "950.00 EUR" in summary.output
    assert "Food & Dining" in summary.output
    assert "80.0%" in summary.output


def test_import_csv_bad_row_fails_without_writing(cli, tmp_path):
    csv_file = tmp_path / "bank.csv"
    csv_file.write_text("date,description,amount\n2025-05-01,ok,1\n2025-05-02,bad,xyz\n")

    result = cli("import-csv", str(csv_file))

    assert result.exit_code != 0
    assert "Row 2" in result.output
    assert "0 transaction(s)." in cli("list").output


def test_list_rejects_inverted_range(cli):
    result = cli("list", "--start", "2025-05-02", "--end", "2025-05-01")
    assert result.exit_code != 0


def test_seed_inserts_samples(cli):
    result = cli("seed")
    assert result.exit_code == 0, result.output
    assert "Seeded 5 sample transaction(s)." in result.output
    assert "5 transaction(s)." in cli("list").output


def test_settings_update_and_reset(cli, tmp_path):
    shown = cli("settings")
    assert "currency: EUR" in shown.output

    changed = cli("settings", "--currency", "USD", "--light-mode")
    assert changed.exit_code == 0, changed.output
    assert "currency: USD" in changed.output
    assert "dark_mode: False" in changed.output

    saved = yaml.safe_load((tmp_path / "settings.yaml").read_text())
    assert saved["currency"] == "USD"

    assert "currency: USD" in cli("settings").output
    assert "currency: EUR" in cli("settings", "--reset").output


def test_init_config_writes_defaults_once(tmp_path):
    runner = CliRunner()
    target = tmp_path / "fresh.yaml"

    first = runner.invoke(main, ["--config", str(target), "init-config"])
    assert first.exit_code == 0, first.output
    assert yaml.safe_load(target.read_text())["api_prefix"] == "/api"

    second = runner.invoke(main, ["--config", str(target), "init-config"])
    assert second.exit_code != 0
    assert "already exists" in second.output


def test_db_option_overrides_config(cli, tmp_path):
    other = f"sqlite:///{tmp_path / 'other.db'}"

    result = cli("--db", other, "seed")

    assert result.exit_code == 0, result.output
    assert (tmp_path / "other.db").exists()
    assert "0 transaction(s)." in cli("list").output


def test_import_csv_oversized_amount_is_reported_not_raised(cli, tmp_path):
    csv_file = tmp_path / "bank.csv"
    csv_file.write_text("date,description,amount\n2025-05-01,huge,1234567890123456789012345678901\n")

    result = cli("import-csv", str(csv_file))

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Row 1" in result.output
