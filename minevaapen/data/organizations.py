"""Organization and program reference data, and the user's memberships."""

from __future__ import annotations

import logging

from ..core.database import Database
from ..core.models import Organization, Program

log = logging.getLogger(__name__)

_ORGANIZATION_COLUMNS = "id, name, short_name, country, org_number, is_member"
_PROGRAM_COLUMNS = "id, organization_id, name, weapon_category, is_reserve_allowed"


class OrganizationRepository:
    """Reads over organizations/programs and the ``is_member`` toggle."""

    def __init__(self, db: Database) -> None:
        self.db = db

    # ------------------------------------------------------------------
    # Organizations
    # ------------------------------------------------------------------
    def list_organizations(self) -> list[Organization]:
        rows = self.db.execute(
            f"SELECT {_ORGANIZATION_COLUMNS} FROM organizations "
            "ORDER BY name COLLATE NOCASE, id"
        ).rows
        return [Organization(**row) for row in rows]

    def get_organization(self, organization_id: str) -> Organization | None:
        row = self.db.execute(
            f"SELECT {_ORGANIZATION_COLUMNS} FROM organizations WHERE id = ?",
            [organization_id],
        ).first()
        return Organization(**row) if row else None

    def member_organization_ids(self) -> list[str]:
        """Return ids of the organizations the user is a member of."""
        rows = self.db.execute(
            "SELECT id FROM organizations WHERE is_member = 1 ORDER BY id"
        ).rows
        return [row["id"] for row in rows]

    def set_membership(self, organization_id: str, is_member: bool) -> int:
        """Set ``is_member`` on one organization; return rows changed.

        An unknown id changes nothing and is not an error.
        """
        with self.db.transaction() as db:
            changed = db.execute(
                "UPDATE organizations SET is_member = ? WHERE id = ?",
                [int(is_member), organization_id],
            ).change_count
        log.info("Membership for %s set to %s", organization_id, is_member)
        return changed

    def set_all_memberships(self, is_member: bool) -> int:
        """Set ``is_member`` on every organization; return rows changed."""
        with self.db.transaction() as db:
            changed = db.execute(
                "UPDATE organizations SET is_member = ?", [int(is_member)]
            ).change_count
        log.info("Membership for all %d organizations set to %s", changed, is_member)
        return changed

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------
    def list_programs(self, organization_id: str | None = None) -> list[Program]:
        if organization_id:
            rows = self.db.execute(
                f"SELECT {_PROGRAM_COLUMNS} FROM programs WHERE organization_id = ? "
                "ORDER BY name COLLATE NOCASE, id",
                [organization_id],
            ).rows
        else:
            rows = self.db.execute(
                f"SELECT {_PROGRAM_COLUMNS} FROM programs ORDER BY name COLLATE NOCASE, id"
            ).rows
        return [Program(**row) for row in rows]

    def get_program(self, program_id: str) -> Program | None:
        row = self.db.execute(
            f"SELECT {_PROGRAM_COLUMNS} FROM programs WHERE id = ?", [program_id]
        ).first()
        return Program(**row) if row else None
