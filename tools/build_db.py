from __future__ import annotations

"""CLI utility to build a search database from seed JSON files."""

import argparse
from pathlib import Path

from sqlalchemy import create_engine

from regsearch.app.settings import settings
from regsearch.storage.schema import create_schema
from regsearch.storage.seed import SeedError, load_seed_directory, write_collections


def main() -> None:
    """Create the schema and load every collection in the seed directory."""
    parser = argparse.ArgumentParser(description="Build the regulation search database.")
    parser.add_argument(
        "--seed-dir",
        default="data/seed",
        help="Directory containing collection JSON files.",
    )
    parser.add_argument(
        "--uri",
        default=None,
        help="SQLAlchemy URI; defaults to the configured backend.",
    )
    args = parser.parse_args()

    uri = args.uri
    if uri is None:
        if settings.backend_name in {"postgres", "postgresql"}:
            uri = settings.database_uri
        else:
            path = Path(settings.sqlite_database_path)
            path.parent.mkdir(parents=True, exist_ok=True)
            uri = f"sqlite:///{path}"
    if not uri:
        raise SystemExit("No database URI configured")

    try:
        records = load_seed_directory(Path(args.seed_dir))
    except SeedError as exc:
        raise SystemExit(str(exc)) from exc

    engine = create_engine(uri)
    try:
        create_schema(engine, text_config=settings.text_search_config)
        counts = write_collections(engine, records)
    finally:
        engine.dispose()
    print(
        f"Loaded {counts['collections']} collections "
        f"({counts['articles']} articles, {counts['recitals']} recitals)"
    )


if __name__ == "__main__":
    main()
