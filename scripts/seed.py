"""Seed reference data (cities and task categories) for a TaskShare database."""
from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

from taskshare.config import get_settings
from taskshare.db import get_sessionmaker, init_engine
from taskshare.services.catalog import reset_cities, seed_categories


def main() -> None:
    settings = get_settings()
    print(f"Using database: {settings.database_url}")

    init_engine()
    session = get_sessionmaker()()
    try:
        cities = reset_cities(session, actor="seed-script")
        added = seed_categories(session)
        print(f"Cities: {len(cities)}, new categories: {added}")
    finally:
        session.close()


if __name__ == "__main__":
    main()
