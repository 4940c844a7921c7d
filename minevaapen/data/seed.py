"""Startup synchronisation of schema and reference data.

:meth:`SeedSynchronizer.ensure_seeded` is safe to call from any number of
callers: the first one runs :meth:`SeedSynchronizer.synchronize` and the
rest wait for, and share, its outcome. Once completed, further calls return
the stored report without touching the database.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from concurrent.futures import Future
from dataclasses import dataclass, field
from enum import Enum

from ..core.database import Database
from ..core.models import Organization, Program, UpsertWeaponInput
from ..core.schema import ensure_schema
from .reference import DEMO_WEAPONS, ORGANIZATIONS, PROGRAMS
from .weapons import WeaponRepository

log = logging.getLogger(__name__)


class SeedState(Enum):
    NOT_STARTED = "not_started"
    IN_FLIGHT = "in_flight"
    COMPLETED = "completed"


@dataclass
class SeedReport:
    organizations: int = 0
    programs: int = 0
    demo_weapons: int = 0
    migrations: list[str] = field(default_factory=list)


class SeedSynchronizer:
    """Create tables, run migrations and upsert reference data once."""

    def __init__(
        self,
        db: Database,
        *,
        seed_demo_weapons: bool = False,
        organizations: Sequence[Organization] = ORGANIZATIONS,
        programs: Sequence[Program] = PROGRAMS,
        demo_weapons: Sequence[UpsertWeaponInput] = DEMO_WEAPONS,
    ) -> None:
        self.db = db
        self.seed_demo_weapons = seed_demo_weapons
        self.organizations = tuple(organizations)
        self.programs = tuple(programs)
        self.demo_weapons = tuple(demo_weapons)
        self._lock = threading.Lock()
        self._state = SeedState.NOT_STARTED
        self._future: Future[SeedReport] | None = None

    @property
    def state(self) -> SeedState:
        return self._state

    def ensure_seeded(self) -> SeedReport:
        """Run synchronisation once and share the result with every caller.

        If the run fails, everyone waiting on it gets the exception and the
        state returns to ``NOT_STARTED`` so a later call can try again.
        """
        with self._lock:
            pending = self._future
            if pending is None or self._state is SeedState.NOT_STARTED:
                future: Future[SeedReport] = Future()
                self._future = future
                self._state = SeedState.IN_FLIGHT
            else:
                future = pending

        if future is pending:
            return future.result()

        try:
            report = self.synchronize()
        except BaseException as exc:
            with self._lock:
                self._state = SeedState.NOT_STARTED
                self._future = None
            future.set_exception(exc)
            raise
        with self._lock:
            self._state = SeedState.COMPLETED
        future.set_result(report)
        return report

    def reset(self) -> None:
        """Forget a completed run so the next call synchronises again.

        Used after the database file has been replaced. A run that is still
        in flight is left alone.
        """
        with self._lock:
            if self._state is SeedState.COMPLETED:
                self._state = SeedState.NOT_STARTED
                self._future = None

    # ------------------------------------------------------------------
    def synchronize(self) -> SeedReport:
        """Bring schema and reference data up to date, unconditionally."""
        migrations = ensure_schema(self.db)
        report = SeedReport(migrations=[m.name for m in migrations])

        with self.db.transaction() as db:
            for org in self.organizations:
                # is_member belongs to the user: only new rows get a value
                db.execute(
                    "INSERT INTO organizations "
                    "(id, name, short_name, country, org_number, is_member) "
                    "VALUES (?, ?, ?, ?, ?, 0) "
                    "ON CONFLICT(id) DO UPDATE SET "
                    "name = excluded.name, "
                    "short_name = excluded.short_name, "
                    "country = excluded.country, "
                    "org_number = excluded.org_number",
                    [org.id, org.name, org.short_name, org.country, org.org_number],
                )
                report.organizations += 1

            for program in self.programs:
                db.execute(
                    "INSERT INTO programs "
                    "(id, organization_id, name, weapon_category, is_reserve_allowed) "
                    "VALUES (?, ?, ?, ?, ?) "
                    "ON CONFLICT(id) DO UPDATE SET "
                    "organization_id = excluded.organization_id, "
                    "name = excluded.name, "
                    "weapon_category = excluded.weapon_category, "
                    "is_reserve_allowed = excluded.is_reserve_allowed",
                    [
                        program.id,
                        program.organization_id,
                        program.name,
                        program.weapon_category,
                        int(program.is_reserve_allowed),
                    ],
                )
                report.programs += 1

        if self.seed_demo_weapons:
            report.demo_weapons = self._seed_demo_weapons()

        log.info(
            "Reference data synchronised: %d organizations, %d programs, %d demo weapons",
            report.organizations,
            report.programs,
            report.demo_weapons,
        )
        return report

    def _seed_demo_weapons(self) -> int:
        repo = WeaponRepository(self.db)
        with self.db.transaction() as db:
            if db.execute("SELECT COUNT(*) AS n FROM weapons").scalar():
                return 0
            for weapon in self.demo_weapons:
                repo.upsert_weapon(weapon)
        return len(self.demo_weapons)
