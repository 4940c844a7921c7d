"""Tests for :mod:`minevaapen.core.schema`."""

from __future__ import annotations

import pytest

from minevaapen.core.database import Database
from minevaapen.core.exceptions import SchemaError
from minevaapen.core.schema import (
    MIGRATIONS,
    ColumnMigration,
    apply_migrations,
    create_tables,
    ensure_schema,
    table_columns,
)

# Tables as the first release of the app created them.
LEGACY_TABLES = (
    "CREATE TABLE organizations (id TEXT PRIMARY KEY NOT NULL, name TEXT NOT NULL, "
    "short_name TEXT NOT NULL, country TEXT, org_number TEXT)",
    "CREATE TABLE programs (id TEXT PRIMARY KEY NOT NULL, organization_id TEXT NOT NULL, "
    "name TEXT NOT NULL, weapon_category TEXT, is_reserve_allowed INTEGER NOT NULL DEFAULT 1)",
    "CREATE TABLE weapons (id TEXT PRIMARY KEY NOT NULL, display_name TEXT NOT NULL, "
    "type TEXT NOT NULL, manufacturer TEXT, model TEXT, serial_number TEXT, "
    "acquisition_date TEXT, acquisition_price REAL, weapon_card_ref TEXT, notes TEXT)",
)


def schema_snapshot(db: Database) -> list[tuple]:
    rows = db.execute(
        "SELECT type, name, sql FROM sqlite_master WHERE name NOT LIKE 'sqlite_%' ORDER BY name"
    ).rows
    return [tuple(row.values()) for row in rows]


def test_fresh_schema_has_every_column(db: Database) -> None:
    applied = ensure_schema(db)
    assert [m.name for m in applied] == [m.name for m in MIGRATIONS]
    assert "is_member" in table_columns(db, "organizations")
    for column in ("operation_mode", "caliber", "ownership_status", "loan_end_date"):
        assert column in table_columns(db, "weapons")
    assert table_columns(db, "weapon_programs") == [
        "weapon_id",
        "program_id",
        "status",
        "is_reserve",
    ]


def test_migrations_are_idempotent(db: Database) -> None:
    ensure_schema(db)
    before = schema_snapshot(db)

    assert apply_migrations(db) == []
    assert ensure_schema(db) == []
    assert schema_snapshot(db) == before


def test_legacy_rows_are_backfilled(db: Database) -> None:
    for statement in LEGACY_TABLES:
        db.execute(statement)
    db.execute(
        "INSERT INTO organizations (id, name, short_name) VALUES ('o1', 'Org', 'O')"
    )
    db.execute("INSERT INTO weapons (id, display_name, type) VALUES ('w1', 'Old', 'rifle')")

    applied = ensure_schema(db)
    assert "organizations.is_member" in [m.name for m in applied]

    org = db.execute("SELECT is_member FROM organizations WHERE id = 'o1'").first()
    assert org["is_member"] == 0
    w = db.execute("SELECT ownership_status, caliber FROM weapons WHERE id = 'w1'").first()
    assert w == {"ownership_status": "own", "caliber": None}


def test_backfill_runs_only_when_column_is_added(db: Database) -> None:
    create_tables(db)
    counter = ColumnMigration(
        "weapons",
        "revision",
        "INTEGER NOT NULL DEFAULT 0",
        backfill="UPDATE weapons SET revision = revision + 1",
    )
    db.execute("INSERT INTO weapons (id, display_name, type) VALUES ('w1', 'A', 'rifle')")

    assert apply_migrations(db, (counter,)) == [counter]
    assert apply_migrations(db, (counter,)) == []
    assert db.execute("SELECT revision FROM weapons").scalar() == 1


def test_missing_table_is_fatal(db: Database) -> None:
    with pytest.raises(SchemaError):
        apply_migrations(db)


def test_failed_migration_rolls_back_whole_run(db: Database) -> None:
    create_tables(db)
    good = ColumnMigration("weapons", "extra", "TEXT")
    bad = ColumnMigration("weapons", "broken", "TEXT NOT NULL")  # no default
    db.execute("INSERT INTO weapons (id, display_name, type) VALUES ('w1', 'A', 'rifle')")

    with pytest.raises(SchemaError):
        apply_migrations(db, (good, bad))
    assert "extra" not in table_columns(db, "weapons")
