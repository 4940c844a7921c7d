"""Wiring of the data core for one application lifetime."""

from __future__ import annotations

from dataclasses import dataclass, field

from .config import Settings
from .core.database import Database
from .data.organizations import OrganizationRepository
from .data.seed import SeedSynchronizer
from .data.weapons import WeaponRepository
from .events import ChangeBus, DatabaseEvent, Subscription
from .services.storage import StorageService


@dataclass
class App:
    """Owns the database handle and every component built on top of it."""

    settings: Settings
    db: Database
    bus: ChangeBus
    seeder: SeedSynchronizer
    weapons: WeaponRepository
    organizations: OrganizationRepository
    storage: StorageService
    _subscriptions: list[Subscription] = field(default_factory=list, repr=False)

    def close(self) -> None:
        for subscription in self._subscriptions:
            subscription.unsubscribe()
        self._subscriptions.clear()
        self.db.close()


def build_app(settings: Settings) -> App:
    db = Database(settings.database_path)
    bus = ChangeBus()
    seeder = SeedSynchronizer(db, seed_demo_weapons=settings.seed_demo_weapons)
    app = App(
        settings=settings,
        db=db,
        bus=bus,
        seeder=seeder,
        weapons=WeaponRepository(db),
        organizations=OrganizationRepository(db),
        storage=StorageService(settings, db, bus),
    )
    # A restored file may predate the current schema.
    app._subscriptions.append(bus.subscribe(DatabaseEvent.RESTORED, seeder.reset))
    return app
