# scripts/init_db.py
import sys
import os
import argparse
import logging

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.append(ROOT_DIR)
from dotenv import load_dotenv

env = os.getenv("APP_ENV", "local")
load_dotenv(os.path.join(ROOT_DIR, ".env.local" if env == "local" else ".env"))

from database.db import engine
from services.ingestion_service import load_csv

logging.basicConfig(level=logging.INFO)

DEFAULT_CSV_PATHS = [
    os.path.join(os.path.dirname(__file__), '..', 'data', 'retraction_watch.csv'),
    os.path.join(os.getcwd(), 'retraction_watch.csv'),
]


def _progress(done: int, total: int):
    print(f"\rProgress: {done}/{total} records inserted", end="", flush=True)


def main():
    parser = argparse.ArgumentParser(description="Load a Retraction Watch CSV export into the papers table.")
    parser.add_argument("csv_path", nargs="?", help="Path to the CSV export")
    args = parser.parse_args()

    candidates = [args.csv_path] if args.csv_path else DEFAULT_CSV_PATHS
    csv_path = next((p for p in candidates if p and os.path.exists(p)), None)
    if not csv_path:
        print("CSV file not found. Tried paths:")
        for p in candidates:
            print(f"  - {p}")
        sys.exit(1)

    inserted = load_csv(engine, csv_path, progress=_progress)
    print(f"\n✅ Database initialized. Total records: {inserted}")


if __name__ == "__main__":
    main()
