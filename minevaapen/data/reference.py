"""Bundled reference data: organizations, their programs and demo weapons.

Organizations and programs are re-asserted on every start by
:class:`~minevaapen.data.seed.SeedSynchronizer`. The demo weapons are only
written into an empty weapons table, and only when demo seeding is enabled.
"""

from __future__ import annotations

from ..core.models import Organization, Program, ProgramSelection, UpsertWeaponInput

DFS = "943942102"
DSSN = "988539155"
NSF = "946168114"
NJFF = "956792150"

ORGANIZATIONS: tuple[Organization, ...] = (
    Organization(
        id=DFS,
        name="Det Frivillige Skyttervesen",
        short_name="DFS",
        country="NO",
        org_number=DFS,
    ),
    Organization(
        id=DSSN,
        name="Dynamisk Sportsskyting Norge",
        short_name="DSSN",
        country="NO",
        org_number=DSSN,
    ),
    Organization(
        id=NSF,
        name="Norges Sportsskytterforbund",
        short_name="NSF",
        country="NO",
        org_number=NSF,
    ),
    Organization(
        id=NJFF,
        name="Norges Jeger Og Fiskerforbund",
        short_name="NJFF",
        country="NO",
        org_number=NJFF,
    ),
)

PROGRAMS: tuple[Program, ...] = (
    # DFS
    Program(id="1", organization_id=DFS, name="Baneskyting", weapon_category="rifle"),
    Program(id="2", organization_id=DFS, name="Feltskyting", weapon_category="rifle"),
    Program(
        id="3",
        organization_id=DFS,
        name="Stang- og felthurtigskyting",
        weapon_category="rifle",
    ),
    # NJFF
    Program(id="31", organization_id=NJFF, name="Jaktfelt", weapon_category="rifle"),
    Program(id="32", organization_id=NJFF, name="Jegertrap", weapon_category="shotgun"),
    Program(
        id="33",
        organization_id=NJFF,
        name="Jaktskyting pistol",
        weapon_category="pistol",
        is_reserve_allowed=False,
    ),
    # NSF
    Program(id="101", organization_id=NSF, name="Luftpistol", weapon_category="pistol"),
    Program(id="102", organization_id=NSF, name="Standardpistol", weapon_category="pistol"),
    Program(id="103", organization_id=NSF, name="Grovpistol", weapon_category="pistol"),
    Program(
        id="110",
        organization_id=NSF,
        name="Storviltskyting",
        weapon_category="rifle",
        is_reserve_allowed=False,
    ),
    # DSSN
    Program(
        id="158", organization_id=DSSN, name="Handgun Production", weapon_category="pistol"
    ),
    Program(
        id="159", organization_id=DSSN, name="Handgun Standard", weapon_category="pistol"
    ),
    Program(
        id="160",
        organization_id=DSSN,
        name="Handgun Production Optics",
        weapon_category="pistol",
    ),
    Program(
        id="170", organization_id=DSSN, name="Rifle Semi-Auto Open", weapon_category="rifle"
    ),
    Program(
        id="180", organization_id=DSSN, name="Shotgun Standard", weapon_category="shotgun"
    ),
)

DEMO_WEAPONS: tuple[UpsertWeaponInput, ...] = (
    UpsertWeaponInput(
        id="weapon-001",
        display_name="CZ Shadow 2",
        type="pistol",
        manufacturer="CZ",
        model="Shadow 2",
        serial_number="CZSHADOW2-001",
        acquisition_date="2022-03-15",
        acquisition_price=19000,
        weapon_card_ref="Våpenkort 12345",
        operation_mode="halvautomatisk",
        caliber="9x19",
        notes="Matchpistol satt opp for DSSN Production Optics.",
        programs=[
            ProgramSelection(program_id="160", status="approved", is_reserve=True),
            ProgramSelection(program_id="158", status="pending"),
        ],
    ),
    UpsertWeaponInput(
        id="weapon-002",
        display_name="Tikka T3x Super Varmint",
        type="rifle",
        manufacturer="Tikka",
        model="T3x Super Varmint",
        serial_number="TIKKA-T3X-042",
        acquisition_date="2020-08-20",
        acquisition_price=23000,
        weapon_card_ref="Våpenkort 67890",
        operation_mode="manuell",
        caliber=".308 Win",
        notes="Brukes primært til DFS baneskyting og jaktfelt.",
        programs=[
            ProgramSelection(program_id="1", status="approved"),
            ProgramSelection(program_id="31", status="pending"),
        ],
    ),
)
