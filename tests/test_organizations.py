"""Tests for :class:`minevaapen.data.organizations.OrganizationRepository`."""

from __future__ import annotations

import hashlib
import json

from minevaapen.core.database import Database
from minevaapen.core.models import ProgramSelection, UpsertWeaponInput
from minevaapen.data.organizations import OrganizationRepository
from minevaapen.data.reference import DFS, DSSN, NJFF, ORGANIZATIONS
from minevaapen.data.weapons import WeaponRepository


def table_digest(db: Database, table: str) -> tuple[int, str]:
    rows = db.execute(f"SELECT * FROM {table} ORDER BY 1, 2").rows
    payload = json.dumps(rows, sort_keys=True, default=str).encode()
    return len(rows), hashlib.sha256(payload).hexdigest()


def test_list_organizations_sorted_by_name(organizations: OrganizationRepository) -> None:
    names = [org.name for org in organizations.list_organizations()]
    assert names == sorted(names, key=str.casefold)
    assert len(names) == len(ORGANIZATIONS)


def test_set_membership(organizations: OrganizationRepository) -> None:
    assert organizations.set_membership(DSSN, True) == 1
    assert organizations.get_organization(DSSN).is_member is True
    assert organizations.member_organization_ids() == [DSSN]

    assert organizations.set_membership(DSSN, False) == 1
    assert organizations.get_organization(DSSN).is_member is False


def test_set_membership_unknown_id(organizations: OrganizationRepository) -> None:
    assert organizations.set_membership("nope", True) == 0
    assert organizations.get_organization("nope") is None


def test_set_all_memberships(organizations: OrganizationRepository) -> None:
    assert organizations.set_all_memberships(True) == len(ORGANIZATIONS)
    assert all(org.is_member for org in organizations.list_organizations())

    organizations.set_all_memberships(False)
    assert organizations.member_organization_ids() == []


def test_membership_leaves_programs_and_weapons_alone(
    seeded_db: Database, organizations: OrganizationRepository
) -> None:
    WeaponRepository(seeded_db).upsert_weapon(
        UpsertWeaponInput(
            id="w1",
            display_name="Shadow",
            type="pistol",
            programs=[ProgramSelection(program_id="160", is_reserve=True)],
        )
    )
    tables = ("programs", "weapons", "weapon_programs")
    before = {table: table_digest(seeded_db, table) for table in tables}

    organizations.set_membership(DFS, True)
    organizations.set_all_memberships(True)
    organizations.set_all_memberships(False)

    assert {table: table_digest(seeded_db, table) for table in tables} == before


def test_programs(organizations: OrganizationRepository) -> None:
    njff = organizations.list_programs(NJFF)
    assert njff and {p.organization_id for p in njff} == {NJFF}
    assert [p.name for p in njff] == sorted((p.name for p in njff), key=str.casefold)

    program = organizations.get_program("33")
    assert program is not None
    assert program.is_reserve_allowed is False
    assert organizations.get_program("missing") is None
