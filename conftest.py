"""Shared pytest fixtures.

The repository root is put on ``sys.path`` so the tests import the local
``minevaapen`` package without installing it first.
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

ROOT_DIR = os.path.abspath(os.path.dirname(__file__))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from minevaapen.core.database import Database  # noqa: E402
from minevaapen.data.organizations import OrganizationRepository  # noqa: E402
from minevaapen.data.seed import SeedSynchronizer  # noqa: E402
from minevaapen.data.weapons import WeaponRepository  # noqa: E402


@pytest.fixture
def db(tmp_path: Path) -> Iterator[Database]:
    database = Database(tmp_path / "SQLite" / "test.db")
    yield database
    database.close()


@pytest.fixture
def seeded_db(db: Database) -> Database:
    """Database with schema and bundled reference data, but no weapons."""
    SeedSynchronizer(db).ensure_seeded()
    return db


@pytest.fixture
def weapons(seeded_db: Database) -> WeaponRepository:
    return WeaponRepository(seeded_db)


@pytest.fixture
def organizations(seeded_db: Database) -> OrganizationRepository:
    return OrganizationRepository(seeded_db)
