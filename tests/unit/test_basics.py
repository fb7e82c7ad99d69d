import csv
import io
import zipfile
from pathlib import Path
from time import sleep

import pytest

from priceport import config
from priceport.codec.records import parse_all
from priceport.domain.errors import CsvFormatError
from priceport.infrastructure.db_factory import build_dsn
from priceport.utils import profiler
from scripts import generate_data


def test_get_settings_defaults():
    settings = config.Settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_user == "postgres"
    assert settings.db_name == "priceport"
    assert settings.db_pool_min_size <= settings.db_pool_max_size
    assert settings.export_batch_size > 0
    assert settings.api_port == 8080


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("DB_HOST", "db.internal")
    monkeypatch.setenv("DB_POOL_MAX_SIZE", "3")
    monkeypatch.setenv("LOG_JSON", "true")

    settings = config.Settings()

    assert settings.db_host == "db.internal"
    assert settings.db_pool_max_size == 3
    assert settings.log_json is True


def test_build_dsn_uses_settings():
    settings = config.Settings(db_user="u", db_password="p", db_host="h", db_port=6543, db_name="n")
    assert build_dsn(settings) == "postgresql://u:p@h:6543/n"


def test_profile_block_measures_time():
    with profiler.profile_block("sleep") as stats:
        sleep(0.05)
    assert stats.duration_seconds >= 0.05
    assert stats.peak_rss_bytes is not None and stats.peak_rss_bytes > 0
    extra = stats.as_log_extra()
    assert extra["stage"] == "sleep"
    assert extra["duration_ms"] >= 50


def test_profile_block_records_stats_when_block_raises():
    with pytest.raises(RuntimeError):
        with profiler.profile_block("boom") as stats:
            raise RuntimeError("boom")
    assert stats.end_ts >= stats.start_ts > 0


def test_generate_data_writes_archive(tmp_path: Path):
    archive_path = tmp_path / "sample.zip"
    csv_bytes = generate_data._generate_rows_csv(rows=5, seed=123)
    generate_data._write_archive(archive_path, csv_bytes)

    with zipfile.ZipFile(archive_path) as archive:
        assert archive.namelist() == ["data.csv"]
        data = archive.read("data.csv")
    rows = list(csv.reader(io.StringIO(data.decode("utf-8"))))
    # header + 5 rows = 6 lines
    assert len(rows) == 6
    assert rows[0] == ["name", "category", "price", "create_date"]
    assert len(parse_all(io.BytesIO(data))) == 5


def test_generate_data_is_deterministic():
    assert generate_data._generate_rows_csv(rows=10, seed=7) == generate_data._generate_rows_csv(
        rows=10, seed=7
    )


def test_generate_data_can_corrupt_a_line():
    data = generate_data._generate_rows_csv(rows=4, seed=1, invalid_line=3)

    with pytest.raises(CsvFormatError) as excinfo:
        parse_all(io.BytesIO(data))
    assert excinfo.value.line_number == 3
