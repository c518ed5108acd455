#!/usr/bin/env python
"""Seed the development database with fixture authors and quotes.

Constraints:
- Refuses to run outside local/test (QUOTARY_ENV check)
- Idempotent via ON CONFLICT DO NOTHING
- Never runs automatically (manual invocation only)

Usage:
    cd python && DATABASE_URL=... python ../scripts/seed_dev.py
"""

import os
import sys


def main():
    quotary_env = os.getenv("QUOTARY_ENV", "local")
    if quotary_env not in ("local", "test"):
        print(f"ERROR: seed_dev.py refuses to run in QUOTARY_ENV={quotary_env}")
        sys.exit(1)

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        print("ERROR: DATABASE_URL environment variable must be set")
        sys.exit(1)

    from sqlalchemy import create_engine, text

    from tests.fixtures import FIXTURE_AUTHORS, FIXTURE_CATEGORY_ID, FIXTURE_QUOTES

    engine = create_engine(database_url)
    created = []

    with engine.connect() as conn:
        result = conn.execute(
            text("""
                INSERT INTO categories (id, name, slug)
                VALUES (:id, 'Stoicism', 'stoicism')
                ON CONFLICT (id) DO NOTHING
                RETURNING id
            """),
            {"id": FIXTURE_CATEGORY_ID},
        )
        if result.fetchone() is not None:
            created.append(f"category {FIXTURE_CATEGORY_ID}")

        for author in FIXTURE_AUTHORS:
            result = conn.execute(
                text("""
                    INSERT INTO author_profiles (id, name, slug, bio)
                    VALUES (:id, :name, :slug, :bio)
                    ON CONFLICT (id) DO NOTHING
                    RETURNING id
                """),
                author,
            )
            if result.fetchone() is not None:
                created.append(f"author {author['slug']}")

        for quote in FIXTURE_QUOTES:
            result = conn.execute(
                text("""
                    INSERT INTO quotes (id, slug, content, author_profile_id, category_id)
                    VALUES (:id, :slug, :content, :author_profile_id, :category_id)
                    ON CONFLICT (id) DO NOTHING
                    RETURNING id
                """),
                {**quote, "category_id": FIXTURE_CATEGORY_ID},
            )
            if result.fetchone() is not None:
                created.append(f"quote {quote['slug']}")

        conn.commit()

    db_display = database_url.split("@")[1] if "@" in database_url else database_url
    print(f"Database: {db_display}")
    print(f"QUOTARY_ENV: {quotary_env}")
    print()
    for line in created:
        print(f"Created: {line}")
    if not created:
        print("Nothing to do; fixture rows already exist.")


if __name__ == "__main__":
    main()
