"""Tests for :func:`minevaapen.app.build_app`."""

from __future__ import annotations

from pathlib import Path

from minevaapen.app import build_app
from minevaapen.config import Settings
from minevaapen.core.models import UpsertWeaponInput
from minevaapen.data.seed import SeedState
from minevaapen.events import DatabaseEvent


def test_components_share_one_database(tmp_path: Path) -> None:
    app = build_app(Settings(data_dir=tmp_path))
    try:
        assert app.weapons.db is app.db
        assert app.organizations.db is app.db
        assert app.storage.db is app.db
        assert app.db.path == tmp_path / "SQLite" / "minevaapen.db"
    finally:
        app.close()
    assert not app.db.is_open


def test_restore_resets_seeding(tmp_path: Path) -> None:
    app = build_app(Settings(data_dir=tmp_path))
    try:
        app.seeder.ensure_seeded()
        app.weapons.upsert_weapon(UpsertWeaponInput(id="w1", display_name="A", type="rifle"))
        app.storage.backup_database()

        app.storage.restore_database()
        assert app.seeder.state is SeedState.NOT_STARTED

        app.seeder.ensure_seeded()
        assert app.weapons.get_weapon_by_id("w1") is not None
    finally:
        app.close()
    assert app.bus.subscriber_count(DatabaseEvent.RESTORED) == 0
