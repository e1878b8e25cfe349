"""
Bring the database schema up to date without dropping data.

Creates the tables declared in the models that do not exist yet; existing
tables and rows are left alone, apart from columns listed in ADDED_COLUMNS.
Default system_config rows are added when missing.

Run:
  python scripts/ensure_schema.py
"""

from __future__ import annotations

import sys
from pathlib import Path

from sqlalchemy import inspect, text

# project root on sys.path so the package imports without installation
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

print("[ensure] loading app...")
from branch_console import create_app  # noqa: E402
from branch_console.extensions import db  # noqa: E402
from branch_console.system_config import seed_defaults  # noqa: E402


def _tables() -> set[str]:
    return set(inspect(db.engine).get_table_names())


# (table, column, DDL) added to tables created before the column existed
ADDED_COLUMNS = [
    ("work_schedule", "is_full_day", "BOOLEAN NOT NULL DEFAULT false"),
]


def _add_missing_columns(existing: set[str]) -> None:
    for table, column, ddl in ADDED_COLUMNS:
        if table not in existing:
            continue
        columns = {c["name"] for c in inspect(db.engine).get_columns(table)}
        if column in columns:
            continue
        with db.engine.begin() as conn:
            conn.execute(text(f"ALTER TABLE {table} ADD COLUMN {column} {ddl}"))
        print(f"[ensure] added column {table}.{column}")


def main() -> int:
    app = create_app()
    with app.app_context():
        print(f"[ensure] SQLALCHEMY_DATABASE_URI = {app.config.get('SQLALCHEMY_DATABASE_URI', '')}")

        before = _tables()
        print(f"[ensure] tables before: {len(before)}")

        _add_missing_columns(before)
        db.create_all()

        created = sorted(_tables() - before)
        if created:
            print(f"[ensure] created tables: {', '.join(created)}")
        else:
            print("[ensure] no new tables needed.")

        added = seed_defaults()
        print(f"[ensure] system_config rows added: {added}")
        print("[ensure] done.")
        return 0


if __name__ == "__main__":
    sys.exit(main())
