import csv
import importlib
import os
import sys
from unittest.mock import patch

import pytest
from sqlalchemy import create_engine, inspect, text

from database.db import init_db
from database.models.paper_model import PAPER_FIELDS
from services.ingestion_service import load_csv, optimize_store, prune_oldest


@pytest.fixture
def file_engine(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'papers.db'}")
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def csv_path(tmp_path, sample_records):
    path = tmp_path / "retraction_watch.csv"
    headers = [key for _, key in PAPER_FIELDS]
    rows = sample_records + [
        {"Record ID": "0002", "Title": "Duplicate row"},
        {"Record ID": "", "Title": "No identifier"},
    ]
    with open(path, "w", newline="", encoding="utf-8") as fh:
        writer = csv.DictWriter(fh, fieldnames=headers)
        writer.writeheader()
        for row in rows:
            writer.writerow({h: row.get(h, "") for h in headers})
    return str(path)


def test_init_db_fails_without_table(file_engine):
    with pytest.raises(RuntimeError):
        init_db(file_engine)


def test_load_csv_creates_indexed_table(file_engine, csv_path):
    progress = []
    inserted = load_csv(file_engine, csv_path, batch_size=2, progress=lambda d, t: progress.append((d, t)))

    assert inserted == 5
    assert progress[-1] == (5, 5)
    assert init_db(file_engine) == 5

    index_names = {ix["name"] for ix in inspect(file_engine).get_indexes("papers")}
    assert "idx_journal_article_type" in index_names
    assert len(index_names) >= 16


def test_load_csv_stores_empty_cells_as_null(file_engine, csv_path):
    load_csv(file_engine, csv_path)
    with file_engine.connect() as conn:
        row = conn.execute(text("SELECT title, journal FROM papers WHERE record_id = '0005'")).one()
        duplicate = conn.execute(text("SELECT title FROM papers WHERE record_id = '0002'")).scalar_one()
    assert row.journal is None
    assert duplicate == "Machine Learning in Healthcare"


def test_reload_replaces_previous_data(file_engine, csv_path):
    load_csv(file_engine, csv_path)
    assert load_csv(file_engine, csv_path) == 5
    assert init_db(file_engine) == 5


def test_prune_deletes_lowest_record_ids(file_engine, csv_path):
    load_csv(file_engine, csv_path)

    deleted = prune_oldest(file_engine, delete_count=3, batch_size=2)
    assert deleted == 3

    with file_engine.connect() as conn:
        remaining = conn.execute(text("SELECT record_id FROM papers ORDER BY record_id")).scalars().all()
    assert remaining == ["0004", "0005"]


def test_prune_stops_when_table_empty(file_engine, csv_path):
    load_csv(file_engine, csv_path)
    assert prune_oldest(file_engine, delete_count=100, batch_size=4) == 5

    optimize_store(file_engine)
    assert init_db(file_engine) == 0


REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


@pytest.mark.parametrize("module", ["scripts.init_db", "scripts.prune_db"])
@pytest.mark.parametrize("app_env, filename", [("local", ".env.local"), ("production", ".env")])
def test_scripts_pick_env_file_from_app_env(monkeypatch, module, app_env, filename):
    monkeypatch.setenv("APP_ENV", app_env)
    monkeypatch.delitem(sys.modules, module, raising=False)
    with patch("dotenv.load_dotenv") as load:
        importlib.import_module(module)

    path = load.call_args[0][0]
    assert os.path.basename(path) == filename
    assert os.path.dirname(path) == REPO_ROOT
