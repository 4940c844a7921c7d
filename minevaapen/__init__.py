"""Core package for Minevaapen.

This module exposes the data models, the database handle and the
repositories so that consumers of the package can simply import them from
``minevaapen``.
"""

from .core.database import Database
from .core.models import (
    Organization,
    Program,
    ProgramSelection,
    ProgramUsage,
    UpsertWeaponInput,
    Weapon,
    WeaponProgram,
    WeaponWithPrograms,
)
from .data.organizations import OrganizationRepository
from .data.seed import SeedSynchronizer
from .data.weapons import WeaponFilters, WeaponRepository
from .events import ChangeBus, DatabaseEvent

__all__ = [
    "ChangeBus",
    "Database",
    "DatabaseEvent",
    "Organization",
    "OrganizationRepository",
    "Program",
    "ProgramSelection",
    "ProgramUsage",
    "SeedSynchronizer",
    "UpsertWeaponInput",
    "Weapon",
    "WeaponFilters",
    "WeaponProgram",
    "WeaponRepository",
    "WeaponWithPrograms",
]
