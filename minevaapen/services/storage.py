"""Backup, restore and CSV export of the weapon database."""

from __future__ import annotations

import csv
import datetime
import logging
import os
import re
import shutil
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from ..config import APP_NAME, Settings
from ..core.database import Database
from ..core.exceptions import (
    BackupNotFoundError,
    DatabaseNotFoundError,
    NoBackupsFoundError,
    NothingToExportError,
    RestoreFailedError,
)
from ..data.weapons import WeaponRepository
from ..events import ChangeBus, DatabaseEvent

log = logging.getLogger(__name__)

CSV_HEADERS = (
    "id",
    "displayName",
    "type",
    "manufacturer",
    "model",
    "serialNumber",
    "acquisitionDate",
    "acquisitionPrice",
    "weaponCardRef",
    "operationMode",
    "caliber",
    "notes",
    "programs",
    "reserve",
)

BACKUP_NAME_PATTERN = re.compile(rf"^{re.escape(APP_NAME)}-backup-\d{{8}}-\d{{6}}\.db$")


@dataclass(frozen=True)
class BackupFile:
    name: str
    path: Path
    modified_at: float

    @classmethod
    def from_path(cls, path: Path) -> BackupFile:
        return cls(name=path.name, path=path, modified_at=path.stat().st_mtime)


def _timestamp(now: datetime.datetime) -> str:
    return now.strftime("%Y%m%d-%H%M%S")


def _format_number(value: float | None) -> str | None:
    if value is None:
        return None
    return str(int(value)) if float(value).is_integer() else str(value)


class StorageService:
    """File-level operations on the live database.

    Restores close the shared connection, copy the source next to the live
    file and swap it in with :func:`os.replace`, so a failed copy leaves the
    current database untouched. :attr:`DatabaseEvent.RESTORED` is emitted
    once the new file is in place.
    """

    def __init__(
        self,
        settings: Settings,
        db: Database,
        bus: ChangeBus,
        clock: Callable[[], datetime.datetime] = datetime.datetime.now,
    ) -> None:
        self.settings = settings
        self.db = db
        self.bus = bus
        self.clock = clock

    # ------------------------------------------------------------------
    # Backups
    # ------------------------------------------------------------------
    def backup_database(self) -> Path:
        """Copy the live database into the backup directory."""
        if not self.db.path.exists():
            raise DatabaseNotFoundError()
        backup_dir = self.settings.backup_dir
        backup_dir.mkdir(parents=True, exist_ok=True)
        target = backup_dir / f"{APP_NAME}-backup-{_timestamp(self.clock())}.db"
        self.db.backup_to(target)
        log.info("Backed up database to %s", target)
        return target

    def list_backup_files(self) -> list[BackupFile]:
        """Return files named like our backups, most recently modified first."""
        backup_dir = self.settings.backup_dir
        backup_dir.mkdir(parents=True, exist_ok=True)
        backups = [
            BackupFile.from_path(path)
            for path in backup_dir.iterdir()
            if path.is_file() and BACKUP_NAME_PATTERN.match(path.name)
        ]
        backups.sort(key=lambda backup: backup.modified_at, reverse=True)
        return backups

    def restore_database(self, source_path: Path | str | None = None) -> BackupFile:
        """Replace the live database with a backup.

        Without ``source_path`` the newest backup is used; otherwise it must
        name one of the listed backups.
        """
        backups = self.list_backup_files()
        if not backups:
            raise NoBackupsFoundError()

        if source_path is None:
            selected = backups[0]
        else:
            wanted = Path(source_path).resolve()
            selected = next((b for b in backups if b.path.resolve() == wanted), None)
            if selected is None:
                raise BackupNotFoundError()

        self._replace_database(selected.path)
        return selected

    def restore_database_from_file(self, source_path: Path | str) -> BackupFile:
        """Replace the live database with an arbitrary database file."""
        source = Path(source_path)
        if not source.is_file():
            raise BackupNotFoundError()
        self._replace_database(source)
        return BackupFile.from_path(source)

    def _replace_database(self, source: Path) -> None:
        with self.db.detached() as target:
            target.parent.mkdir(parents=True, exist_ok=True)
            staging = target.with_name(f"{target.name}.restore")
            try:
                shutil.copyfile(source, staging)
                os.replace(staging, target)
            except OSError as exc:
                staging.unlink(missing_ok=True)
                log.error("Restore from %s failed: %s", source, exc)
                raise RestoreFailedError(f"Could not restore database: {exc}") from exc
            # The old journal belongs to the replaced file.
            target.with_name(f"{target.name}-journal").unlink(missing_ok=True)
        log.info("Restored database from %s", source)
        self.bus.emit(DatabaseEvent.RESTORED)

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------
    def export_weapons_to_csv(self) -> Path:
        """Write every weapon to a CSV file in the export directory."""
        weapons = WeaponRepository(self.db).list_weapons()
        if not weapons:
            raise NothingToExportError()

        export_dir = self.settings.export_dir
        export_dir.mkdir(parents=True, exist_ok=True)
        path = export_dir / f"{APP_NAME}-weapons-{_timestamp(self.clock())}.csv"

        with open(path, "w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f, lineterminator="\n")
            writer.writerow(CSV_HEADERS)
            for weapon in weapons:
                approved = weapon.approved_programs()
                writer.writerow(
                    [
                        weapon.id,
                        weapon.display_name,
                        weapon.type,
                        weapon.manufacturer,
                        weapon.model,
                        weapon.serial_number,
                        weapon.acquisition_date,
                        _format_number(weapon.acquisition_price),
                        weapon.weapon_card_ref,
                        weapon.operation_mode,
                        weapon.caliber,
                        weapon.notes,
                        "; ".join(p.program_name for p in approved),
                        "X" if any(p.is_reserve for p in approved) else "",
                    ]
                )

        log.info("Exported %d weapons to %s", len(weapons), path)
        return path
