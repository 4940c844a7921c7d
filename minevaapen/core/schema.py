"""Table definitions and additive column migrations.

Tables are created in their original shape and then brought up to date by
:data:`MIGRATIONS`. Whether a migration is needed is decided by looking at
the columns the table actually has, so there is no version counter to keep
in sync with the file.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .database import Database
from .exceptions import SchemaError, StorageError

log = logging.getLogger(__name__)

CREATE_ORGANIZATIONS = """
CREATE TABLE IF NOT EXISTS organizations (
    id          TEXT PRIMARY KEY NOT NULL,
    name        TEXT NOT NULL,
    short_name  TEXT NOT NULL,
    country     TEXT,
    org_number  TEXT
)
"""

CREATE_PROGRAMS = """
CREATE TABLE IF NOT EXISTS programs (
    id                  TEXT PRIMARY KEY NOT NULL,
    organization_id     TEXT NOT NULL REFERENCES organizations(id),
    name                TEXT NOT NULL,
    weapon_category     TEXT,
    is_reserve_allowed  INTEGER NOT NULL DEFAULT 1
)
"""

CREATE_WEAPONS = """
CREATE TABLE IF NOT EXISTS weapons (
    id                 TEXT PRIMARY KEY NOT NULL,
    display_name       TEXT NOT NULL,
    type               TEXT NOT NULL,
    manufacturer       TEXT,
    model              TEXT,
    serial_number      TEXT,
    acquisition_date   TEXT,
    acquisition_price  REAL,
    weapon_card_ref    TEXT,
    notes              TEXT
)
"""

CREATE_WEAPON_PROGRAMS = """
CREATE TABLE IF NOT EXISTS weapon_programs (
    weapon_id   TEXT NOT NULL REFERENCES weapons(id) ON DELETE CASCADE,
    program_id  TEXT NOT NULL REFERENCES programs(id),
    status      TEXT NOT NULL DEFAULT 'approved'
                CHECK (status IN ('approved', 'pending', 'proposed')),
    is_reserve  INTEGER NOT NULL DEFAULT 0,
    PRIMARY KEY (weapon_id, program_id)
)
"""

CREATE_WEAPON_PROGRAMS_INDEX = """
CREATE INDEX IF NOT EXISTS idx_weapon_programs_program
    ON weapon_programs (program_id)
"""

CREATE_STATEMENTS = (
    CREATE_ORGANIZATIONS,
    CREATE_PROGRAMS,
    CREATE_WEAPONS,
    CREATE_WEAPON_PROGRAMS,
    CREATE_WEAPON_PROGRAMS_INDEX,
)


@dataclass(frozen=True)
class ColumnMigration:
    """Add ``column`` to ``table`` when it is missing.

    ``backfill`` runs once, in the same transaction, right after the column
    is added; it never runs against a table that already had the column.
    """

    table: str
    column: str
    definition: str
    backfill: str | None = None

    @property
    def name(self) -> str:
        return f"{self.table}.{self.column}"


MIGRATIONS: tuple[ColumnMigration, ...] = (
    ColumnMigration(
        "organizations",
        "is_member",
        "INTEGER NOT NULL DEFAULT 0",
        backfill="UPDATE organizations SET is_member = 0 WHERE is_member IS NULL",
    ),
    ColumnMigration("weapons", "operation_mode", "TEXT"),
    ColumnMigration("weapons", "caliber", "TEXT"),
    ColumnMigration(
        "weapons",
        "ownership_status",
        "TEXT NOT NULL DEFAULT 'own'",
        backfill=(
            "UPDATE weapons SET ownership_status = 'own' "
            "WHERE ownership_status IS NULL OR ownership_status = ''"
        ),
    ),
    ColumnMigration("weapons", "loan_contact_name", "TEXT"),
    ColumnMigration("weapons", "loan_start_date", "TEXT"),
    ColumnMigration("weapons", "loan_end_date", "TEXT"),
)


def table_columns(db: Database, table: str) -> list[str]:
    """Return the column names of ``table`` in declaration order."""
    rows = db.execute(f"PRAGMA table_info({table})").rows  # noqa: S608
    return [row["name"] for row in rows]


def create_tables(db: Database) -> None:
    try:
        with db.transaction():
            for statement in CREATE_STATEMENTS:
                db.execute(statement)
    except StorageError as exc:
        raise SchemaError(f"Failed to create tables: {exc}") from exc


def apply_migrations(
    db: Database, migrations: tuple[ColumnMigration, ...] = MIGRATIONS
) -> list[ColumnMigration]:
    """Add every missing column and return the migrations that ran.

    Running this against an up-to-date schema is a no-op. Any failure rolls
    back all of this run's changes and raises :class:`SchemaError`.
    """
    applied: list[ColumnMigration] = []
    try:
        with db.transaction():
            for migration in migrations:
                columns = table_columns(db, migration.table)
                if not columns:
                    raise SchemaError(f"Table {migration.table!r} does not exist")
                if migration.column in columns:
                    continue
                db.execute(
                    f"ALTER TABLE {migration.table} "
                    f"ADD COLUMN {migration.column} {migration.definition}"
                )
                if migration.backfill:
                    db.execute(migration.backfill)
                applied.append(migration)
    except StorageError as exc:
        raise SchemaError(f"Failed to migrate database schema: {exc}") from exc

    for migration in applied:
        log.info("Applied migration %s", migration.name)
    return applied


def ensure_schema(db: Database) -> list[ColumnMigration]:
    """Create missing tables and apply pending migrations."""
    create_tables(db)
    return apply_migrations(db)
