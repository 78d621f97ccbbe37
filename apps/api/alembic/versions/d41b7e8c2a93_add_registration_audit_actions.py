"""add registration audit actions

Revision ID: d41b7e8c2a93
Revises: a7c1e9d2b4f0
Create Date: 2026-10-19 15:00:00.000000

Adds REAPPLICATION_SUBMITTED and SUPERADMIN_CREATED to audit_action_type.
PostgreSQL cannot drop enum labels, so downgrade leaves them in place.
"""

from collections.abc import Sequence

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "d41b7e8c2a93"
down_revision: str | Sequence[str] | None = "a7c1e9d2b4f0"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


NEW_ACTIONS = ("REAPPLICATION_SUBMITTED", "SUPERADMIN_CREATED")


def upgrade() -> None:
    for label in NEW_ACTIONS:
        op.execute(f"ALTER TYPE audit_action_type ADD VALUE IF NOT EXISTS '{label}'")


def downgrade() -> None:
    pass
