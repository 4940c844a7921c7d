"""Data models for Minevaapen's core entities.

The models are implemented using :mod:`pydantic`. Read models are lenient:
they coerce SQLite's ``0``/``1`` integers to booleans but accept whatever
text a stored row holds, since a restored file may come from another version
of the app. Write models such as :class:`UpsertWeaponInput` are strict, so
input handed to the repositories is checked before any SQL runs.
"""

from __future__ import annotations

import uuid
from typing import Literal

from pydantic import BaseModel, Field

LinkStatus = Literal["approved", "pending", "proposed"]
OwnershipStatus = Literal["own", "loanIn", "loanOut"]
ReserveFilter = Literal["any", "reserveOnly", "nonReserve"]
OwnershipFilter = Literal["all", "own", "loanIn", "loanOut"]
WeaponType = Literal["pistol", "revolver", "rifle", "shotgun", "carbine", "combined"]

OPERATION_MODES = ("helautomatisk", "halvautomatisk", "manuell", "enkeltskudd")


class Organization(BaseModel):
    """A shooting-sport governing body.

    Attributes
    ----------
    id:
        Stable external identifier, usually the national registration
        number.
    name:
        Full name of the organization.
    short_name:
        Abbreviation shown in lists, e.g. ``"DFS"``.
    country:
        ISO country code, if known.
    org_number:
        Registration number, if known.
    is_member:
        Whether the user is a member. Owned by the user; reference data
        synchronisation never overwrites it.

    """

    id: str
    name: str
    short_name: str
    country: str | None = None
    org_number: str | None = None
    is_member: bool = False


class Program(BaseModel):
    """A discipline offered by an :class:`Organization`."""

    id: str
    organization_id: str
    name: str
    weapon_category: str | None = None
    is_reserve_allowed: bool = True


class ProgramUsage(Program):
    """A program together with its approved and reserve link counts."""

    weapon_count: int = 0
    reserve_count: int = 0


class WeaponProgram(BaseModel):
    """A weapon's link to a program as returned by the read queries."""

    program_id: str
    program_name: str
    organization_id: str
    is_reserve: bool = False
    status: str = "approved"


class Weapon(BaseModel):
    """A firearm owned, borrowed or lent by the user.

    Only ``id``, ``display_name`` and ``type`` are required. The ``loan_*``
    fields are meaningful when ``ownership_status`` is not ``"own"``.
    Text columns are taken as stored.
    """

    id: str
    display_name: str
    type: str
    manufacturer: str | None = None
    model: str | None = None
    serial_number: str | None = None
    acquisition_date: str | None = None
    acquisition_price: float | None = None
    weapon_card_ref: str | None = None
    operation_mode: str | None = None
    caliber: str | None = None
    notes: str | None = None
    ownership_status: str = "own"
    loan_contact_name: str | None = None
    loan_start_date: str | None = None
    loan_end_date: str | None = None


class WeaponWithPrograms(Weapon):
    """A weapon together with every link it currently holds."""

    programs: list[WeaponProgram] = Field(default_factory=list)

    def approved_programs(self) -> list[WeaponProgram]:
        return [p for p in self.programs if p.status == "approved"]


class ProgramSelection(BaseModel):
    """A program picked for a weapon when it is saved.

    ``status`` may be left out; see
    :func:`minevaapen.data.weapons.normalize_program_selections` for how the
    final status is decided.
    """

    program_id: str
    status: LinkStatus | None = None
    is_reserve: bool = False


class UpsertWeaponInput(Weapon):
    """Full replacement payload for :meth:`WeaponRepository.upsert_weapon`."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    display_name: str = Field(min_length=1)
    type: WeaponType
    ownership_status: OwnershipStatus = "own"
    programs: list[ProgramSelection] = Field(default_factory=list)
