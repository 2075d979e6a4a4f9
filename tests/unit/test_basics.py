import csv
import datetime as dt
from pathlib import Path
from time import sleep

from typer.testing import CliRunner

from sales_engine import config
from sales_engine.orchestrator import available_sources, resolve_source
from sales_engine.sample_data import CSV_HEADERS, generate_rows
from sales_engine.store.sources import CsvRecordSource, SALES_COLUMNS
from sales_engine.utils import profiler
from scripts import generate_data


def test_get_settings_defaults():
    settings = config.get_settings()
    assert settings.data_source in ("csv", "postgres")
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "sales"
    assert settings.default_page_size > 0
    assert settings.max_page_size >= settings.default_page_size
    assert settings.phone_prefix_min_length <= settings.phone_prefix_max_length
    assert "app_env" not in config.Settings.model_fields


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MAX_PAGE_SIZE", "500")
    monkeypatch.setenv("DATA_SOURCE", "postgres")

    settings = config.Settings()

    assert settings.max_page_size == 500
    assert settings.data_source == "postgres"


def test_profile_block_measures_time():
    with profiler.profile_block("sleep") as stats:
        sleep(0.05)
    assert stats.duration_seconds >= 0.05
    assert stats.peak_rss_bytes is None or stats.peak_rss_bytes > 0
    if stats.cpu_percent is not None:
        assert isinstance(stats.cpu_percent, float)


def test_available_sources_contains_known_entries():
    names = available_sources()
    assert "csv" in names
    assert "postgres" in names


def test_resolve_source_uses_configured_path(tmp_path: Path):
    settings = config.Settings(DATA_SOURCE="csv", DATA_PATH=str(tmp_path / "sales.csv"))

    source = resolve_source(settings)

    assert isinstance(source, CsvRecordSource)
    assert "sales.csv" in source.name


def test_generated_rows_are_deterministic():
    first = list(generate_rows(5, seed=123, end_date=dt.date(2024, 1, 1)))
    second = list(generate_rows(5, seed=123, end_date=dt.date(2024, 1, 1)))

    assert first == second
    assert [row["Transaction ID"] for row in first] == ["1", "2", "3", "4", "5"]
    assert all(row["Date"] <= "2024-01-01" for row in first)


def test_generate_data_writes_csv(tmp_path: Path):
    csv_path = tmp_path / "records.csv"

    result = CliRunner().invoke(
        generate_data.app, ["--rows", "5", "--batch-size", "2", "--seed", "123", "--output", str(csv_path)]
    )

    assert result.exit_code == 0, result.output
    with csv_path.open("r", newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    # header + 5 rows
    assert len(rows) == 6
    assert rows[0] == CSV_HEADERS
    assert len(CSV_HEADERS) == len(SALES_COLUMNS)
