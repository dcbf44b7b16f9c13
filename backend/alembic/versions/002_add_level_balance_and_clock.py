"""Add level balancing, group selection and round clock state

Revision ID: 002_balance_clock
Revises: 001_initial
Create Date: 2026-05-18 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy import inspect

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002_balance_clock"
down_revision: Union[str, None] = "001_initial"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    bind = op.get_bind()
    inspector = inspect(bind)
    tournament_columns = [col["name"] for col in inspector.get_columns("tournament")]
    schedule_columns = [col["name"] for col in inspector.get_columns("generatedschedule")]

    # Columns may already exist when db_schema_patch ran at startup
    with op.batch_alter_table("tournament", schema=None) as batch_op:
        if "balance_by_level" not in tournament_columns:
            batch_op.add_column(sa.Column("balance_by_level", sa.Boolean(), nullable=False, server_default=sa.false()))
        if "selected_group_id" not in tournament_columns:
            batch_op.add_column(sa.Column("selected_group_id", sa.Integer(), nullable=True))
            batch_op.create_foreign_key(
                "fk_tournament_selected_group", "playergroup", ["selected_group_id"], ["id"]
            )

    if "clock_json" not in schedule_columns:
        op.add_column("generatedschedule", sa.Column("clock_json", sa.JSON(), nullable=True))


def downgrade() -> None:
    op.drop_column("generatedschedule", "clock_json")
    with op.batch_alter_table("tournament", schema=None) as batch_op:
        batch_op.drop_constraint("fk_tournament_selected_group", type_="foreignkey")
        batch_op.drop_column("selected_group_id")
        batch_op.drop_column("balance_by_level")
