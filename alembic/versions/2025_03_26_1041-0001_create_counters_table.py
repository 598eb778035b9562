"""create partitioned counters table

Revision ID: 0001
Revises: 
Create Date: 2025-03-26
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from hits.core.config import settings
from hits.services.partitions import create_partitions_sql, drop_partitions_sql

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "counters",
        sa.Column("key", sa.Text(), nullable=False),
        sa.Column(
            "minute_window",
            sa.TIMESTAMP(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column("count", sa.Integer(), server_default="0", nullable=False),
        sa.PrimaryKeyConstraint("key", "minute_window"),
        sa.CheckConstraint("count >= 0", name="ck_counters_count_non_neg"),
        postgresql_partition_by="HASH (key)",
    )

    if op.get_context().dialect.name != "postgresql":
        return

    # Partition count is fixed per deployment; changing it later means
    # re-partitioning the table by hand.
    for statement in create_partitions_sql(settings.COUNTER_PARTITIONS):
        op.execute(statement)


def downgrade() -> None:
    if op.get_context().dialect.name == "postgresql":
        for statement in drop_partitions_sql(settings.COUNTER_PARTITIONS):
            op.execute(statement)

    op.drop_table("counters")
