"""Weapon/program aggregate repository.

Weapons are read together with their program links in a single statement:
each weapon row carries a correlated ``json_group_array`` of its links, so a
list of any length costs one round trip and a weapon without links gets an
empty list rather than ``NULL``.

Writes replace a weapon wholesale. :meth:`WeaponRepository.upsert_weapon`
overwrites every column, drops all of the weapon's links and inserts the
normalised selection set, all inside one transaction.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Collection, Iterable
from dataclasses import dataclass
from typing import Any, get_args

from ..core.database import Database
from ..core.models import (
    OwnershipFilter,
    ProgramSelection,
    ProgramUsage,
    ReserveFilter,
    UpsertWeaponInput,
    WeaponProgram,
    WeaponWithPrograms,
)

log = logging.getLogger(__name__)

WEAPON_COLUMNS = (
    "id",
    "display_name",
    "type",
    "manufacturer",
    "model",
    "serial_number",
    "acquisition_date",
    "acquisition_price",
    "weapon_card_ref",
    "operation_mode",
    "caliber",
    "notes",
    "ownership_status",
    "loan_contact_name",
    "loan_start_date",
    "loan_end_date",
)

LOAN_COLUMNS = ("loan_contact_name", "loan_start_date", "loan_end_date")

_RESERVE_FILTERS = get_args(ReserveFilter)
_OWNERSHIP_FILTERS = get_args(OwnershipFilter)


@dataclass(frozen=True)
class WeaponFilters:
    """Criteria for :meth:`WeaponRepository.list_weapons`.

    ``allowed_organization_ids`` limits which links are visible: links to
    programs of other organizations are left out of each weapon's program
    list and are ignored by the other link-based criteria. ``None`` means
    every organization is visible.
    """

    organization_id: str | None = None
    program_id: str | None = None
    reserve_filter: ReserveFilter = "any"
    ownership_filter: OwnershipFilter = "all"
    allowed_organization_ids: Collection[str] | None = None

    def __post_init__(self) -> None:
        if self.reserve_filter not in _RESERVE_FILTERS:
            raise ValueError(f"Unknown reserve filter: {self.reserve_filter!r}")
        if self.ownership_filter not in _OWNERSHIP_FILTERS:
            raise ValueError(f"Unknown ownership filter: {self.ownership_filter!r}")


# ----------------------------------------------------------------------
# Query building
# ----------------------------------------------------------------------
def _visible_programs(alias: str, allowed: Collection[str] | None) -> tuple[str, list[Any]]:
    """Predicate restricting program ``alias`` to the allowed organizations."""
    if allowed is None:
        return "", []
    ids = sorted(set(allowed))
    if not ids:
        return " AND 0", []
    placeholders = ", ".join("?" for _ in ids)
    return f" AND {alias}.organization_id IN ({placeholders})", list(ids)


def _link_exists(
    alias: str, condition: str, allowed: Collection[str] | None
) -> tuple[str, list[Any]]:
    visible, params = _visible_programs(f"{alias}p", allowed)
    sql = (
        f"SELECT 1 FROM weapon_programs {alias} "
        f"JOIN programs {alias}p ON {alias}p.id = {alias}.program_id "
        f"WHERE {alias}.weapon_id = w.id AND {condition}{visible}"
    )
    return sql, params


def build_weapon_query(
    filters: WeaponFilters | None = None, *, weapon_id: str | None = None
) -> tuple[str, list[Any]]:
    """Translate ``filters`` into a parameterised statement.

    Returns the SQL text and its positional parameters, in order. Values are
    always bound, never interpolated.
    """
    filters = filters or WeaponFilters()
    allowed = filters.allowed_organization_ids
    params: list[Any] = []

    visible, visible_params = _visible_programs("p", allowed)
    params.extend(visible_params)
    programs_json = (
        "(SELECT json_group_array(json_object("
        "'program_id', p.id, "
        "'program_name', p.name, "
        "'organization_id', p.organization_id, "
        "'is_reserve', wp.is_reserve, "
        "'status', wp.status)) "
        "FROM weapon_programs wp "
        "JOIN programs p ON p.id = wp.program_id "
        f"WHERE wp.weapon_id = w.id{visible})"
    )

    conditions: list[str] = []
    if weapon_id is not None:
        conditions.append("w.id = ?")
        params.append(weapon_id)

    if filters.organization_id:
        sql, extra = _link_exists("wpo", "wpop.organization_id = ?", allowed)
        conditions.append(f"EXISTS ({sql})")
        params.append(filters.organization_id)
        params.extend(extra)

    if filters.program_id:
        sql, extra = _link_exists("wpg", "wpg.program_id = ?", allowed)
        conditions.append(f"EXISTS ({sql})")
        params.append(filters.program_id)
        params.extend(extra)

    if filters.reserve_filter != "any":
        sql, extra = _link_exists("wpr", "wpr.is_reserve = 1", allowed)
        negate = "NOT " if filters.reserve_filter == "nonReserve" else ""
        conditions.append(f"{negate}EXISTS ({sql})")
        params.extend(extra)

    if filters.ownership_filter != "all":
        conditions.append("w.ownership_status = ?")
        params.append(filters.ownership_filter)

    columns = ", ".join(f"w.{column}" for column in WEAPON_COLUMNS)
    where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
    sql = (
        f"SELECT {columns}, {programs_json} AS programs_json "
        f"FROM weapons w{where} "
        "ORDER BY w.display_name COLLATE NOCASE, w.id"
    )
    return sql, params


def _parse_programs(raw: str | None) -> list[WeaponProgram]:
    if not raw:
        return []
    links = [WeaponProgram(**item) for item in json.loads(raw) if item is not None]
    links.sort(key=lambda link: (link.program_name.casefold(), link.program_id))
    return links


def _row_to_weapon(row: dict[str, Any]) -> WeaponWithPrograms:
    data = dict(row)
    programs = _parse_programs(data.pop("programs_json", None))
    return WeaponWithPrograms(**data, programs=programs)


# ----------------------------------------------------------------------
# Link normalisation
# ----------------------------------------------------------------------
def normalize_program_selections(
    selections: Iterable[ProgramSelection],
    preferred_approved_id: str | None = None,
) -> list[ProgramSelection]:
    """Return ``selections`` with at most one approved link.

    A selection without a status counts as approved. The approved link is
    ``preferred_approved_id`` when that selection is approved, otherwise the
    first approved selection marked reserve, otherwise the first approved
    selection; other approved selections become ``pending``.
    Only the approved link may keep ``is_reserve``. Repeated program ids
    collapse onto the last occurrence.
    """
    resolved: dict[str, ProgramSelection] = {}
    for selection in selections:
        resolved[selection.program_id] = ProgramSelection(
            program_id=selection.program_id,
            status=selection.status or "approved",
            is_reserve=selection.is_reserve,
        )

    approved = [sel for sel in resolved.values() if sel.status == "approved"]
    preferred = resolved.get(preferred_approved_id) if preferred_approved_id else None
    if preferred is not None and preferred.status == "approved":
        approved_id = preferred.program_id
    else:
        pick = next((sel for sel in approved if sel.is_reserve), None)
        if pick is None and approved:
            pick = approved[0]
        approved_id = pick.program_id if pick else None

    normalized: list[ProgramSelection] = []
    for program_id, selection in resolved.items():
        status = selection.status
        if status == "approved" and program_id != approved_id:
            status = "pending"
        normalized.append(
            ProgramSelection(
                program_id=program_id,
                status=status,
                is_reserve=selection.is_reserve and status == "approved",
            )
        )
    return normalized


class WeaponRepository:
    """Queries and commands over weapons and their program links."""

    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list_weapons(self, filters: WeaponFilters | None = None) -> list[WeaponWithPrograms]:
        """Return matching weapons ordered case-insensitively by name."""
        sql, params = build_weapon_query(filters)
        return [_row_to_weapon(row) for row in self.db.execute(sql, params).rows]

    def get_weapon_by_id(self, weapon_id: str) -> WeaponWithPrograms | None:
        """Return the weapon with ``weapon_id`` or ``None`` when absent."""
        sql, params = build_weapon_query(weapon_id=weapon_id)
        row = self.db.execute(sql, params).first()
        return _row_to_weapon(row) if row else None

    def program_usage(
        self,
        organization_id: str | None = None,
        allowed_organization_ids: Collection[str] | None = None,
    ) -> list[ProgramUsage]:
        """Count approved and approved-reserve links per program.

        Pending and proposed links are not counted.
        """
        conditions: list[str] = []
        params: list[Any] = []
        if organization_id:
            conditions.append("p.organization_id = ?")
            params.append(organization_id)
        visible, visible_params = _visible_programs("p", allowed_organization_ids)
        if visible:
            conditions.append(visible.removeprefix(" AND "))
            params.extend(visible_params)

        where = f" WHERE {' AND '.join(conditions)}" if conditions else ""
        sql = (
            "SELECT p.id, p.organization_id, p.name, p.weapon_category, "
            "p.is_reserve_allowed, "
            "(SELECT COUNT(*) FROM weapon_programs wp "
            " WHERE wp.program_id = p.id AND wp.status = 'approved') AS weapon_count, "
            "(SELECT COUNT(*) FROM weapon_programs wp "
            " WHERE wp.program_id = p.id AND wp.status = 'approved' "
            " AND wp.is_reserve = 1) AS reserve_count "
            f"FROM programs p{where} "
            "ORDER BY p.name COLLATE NOCASE, p.id"
        )
        return [ProgramUsage(**row) for row in self.db.execute(sql, params).rows]

    def count_links(self, weapon_id: str | None = None) -> int:
        """Return the number of raw link rows, optionally for one weapon."""
        if weapon_id is None:
            result = self.db.execute("SELECT COUNT(*) AS n FROM weapon_programs")
        else:
            result = self.db.execute(
                "SELECT COUNT(*) AS n FROM weapon_programs WHERE weapon_id = ?", [weapon_id]
            )
        return int(result.scalar() or 0)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------
    def upsert_weapon(
        self, data: UpsertWeaponInput, preferred_approved_id: str | None = None
    ) -> str:
        """Insert or fully replace a weapon and its links; return its id.

        Omitted optional fields are stored as ``NULL``. Loan details are
        cleared for weapons the user owns. Any failure rolls back the whole
        write.
        """
        record = data.model_dump(include=set(WEAPON_COLUMNS))
        if record["ownership_status"] == "own":
            record.update(dict.fromkeys(LOAN_COLUMNS))
        links = normalize_program_selections(data.programs, preferred_approved_id)

        placeholders = ", ".join("?" for _ in WEAPON_COLUMNS)
        updates = ", ".join(
            f"{column} = excluded.{column}" for column in WEAPON_COLUMNS if column != "id"
        )
        upsert_sql = (
            f"INSERT INTO weapons ({', '.join(WEAPON_COLUMNS)}) VALUES ({placeholders}) "
            f"ON CONFLICT(id) DO UPDATE SET {updates}"
        )

        with self.db.transaction() as db:
            db.execute(upsert_sql, [record[column] for column in WEAPON_COLUMNS])
            db.execute("DELETE FROM weapon_programs WHERE weapon_id = ?", [data.id])
            for link in links:
                db.execute(
                    "INSERT INTO weapon_programs (weapon_id, program_id, status, is_reserve) "
                    "VALUES (?, ?, ?, ?)",
                    [data.id, link.program_id, link.status, int(link.is_reserve)],
                )

        log.debug("Saved weapon %s with %d program link(s)", data.id, len(links))
        return data.id

    def delete_weapon(self, weapon_id: str) -> int:
        """Delete a weapon and its links; return the number of weapons removed."""
        with self.db.transaction() as db:
            db.execute("DELETE FROM weapon_programs WHERE weapon_id = ?", [weapon_id])
            removed = db.execute("DELETE FROM weapons WHERE id = ?", [weapon_id]).change_count
        log.debug("Deleted weapon %s (%d removed)", weapon_id, removed)
        return removed
