# scripts/prune_db.py
import sys
import os
import argparse
import logging

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
sys.path.append(ROOT_DIR)
from dotenv import load_dotenv

env = os.getenv("APP_ENV", "local")
load_dotenv(os.path.join(ROOT_DIR, ".env.local" if env == "local" else ".env"))

from database.db import engine, init_db
from services.ingestion_service import optimize_store, prune_oldest

logging.basicConfig(level=logging.INFO)


def _progress(done: int, total: int):
    print(f"\rProgress: {done:,}/{total:,} records deleted", end="", flush=True)


def main():
    parser = argparse.ArgumentParser(description="Delete the oldest records and rebuild indexes.")
    parser.add_argument("--count", type=int, default=40000, help="Number of records to delete")
    parser.add_argument("--batch-size", type=int, default=1000)
    parser.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    args = parser.parse_args()

    try:
        before = init_db()
    except Exception as e:
        print(f"❌ Error opening database: {e}")
        sys.exit(1)

    print(f"WARNING: This will delete up to {args.count:,} of {before:,} records (lowest Record ID first).")
    if not args.yes:
        confirm = input("Are you sure you want to proceed? (yes/no): ")
        if confirm.lower() != "yes":
            print("Operation cancelled.")
            return

    try:
        deleted = prune_oldest(engine, args.count, batch_size=args.batch_size, progress=_progress)
        print(f"\n✓ Deleted {deleted:,} records")

        print("Vacuuming, reindexing and analyzing...")
        optimize_store(engine)
        print(f"✅ Maintenance complete. Records remaining: {init_db():,}")
    except Exception as e:
        print(f"\n❌ Error during maintenance: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
