"""create measurements table

Revision ID: 20261018_0001
Revises:
Create Date: 2026-10-18 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261018_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "measurements",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("date_utc", sa.DateTime(timezone=True), nullable=False),
        sa.Column("date_local", sa.String(length=64), nullable=True),
        sa.Column("parameter", sa.String(length=32), nullable=False),
        sa.Column("location", sa.String(length=255), nullable=False),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("unit", sa.String(length=32), nullable=False),
        sa.Column("city", sa.String(length=255), nullable=False),
        sa.Column("country", sa.String(length=8), nullable=False),
        sa.Column("source_name", sa.String(length=255), nullable=False),
        sa.Column("attribution", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("averaging_period", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("coordinates", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_measurements"),
    )
    op.create_index(
        "uq_measurements_location_parameter_date_utc",
        "measurements",
        ["location", "parameter", "date_utc"],
        unique=True,
    )
    op.create_index("ix_measurements_city", "measurements", ["city"], unique=False)
    op.create_index("ix_measurements_date_utc", "measurements", ["date_utc"], unique=False)
    op.create_index("ix_measurements_city_location", "measurements", ["city", "location"], unique=False)
    op.create_index("ix_measurements_country", "measurements", ["country"], unique=False)
    op.create_index(
        "ix_measurements_country_date_utc",
        "measurements",
        ["country", sa.text("date_utc DESC")],
        unique=False,
    )
    op.create_index(
        "ix_measurements_location_date_utc",
        "measurements",
        ["location", sa.text("date_utc DESC")],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index("ix_measurements_location_date_utc", table_name="measurements")
    op.drop_index("ix_measurements_country_date_utc", table_name="measurements")
    op.drop_index("ix_measurements_country", table_name="measurements")
    op.drop_index("ix_measurements_city_location", table_name="measurements")
    op.drop_index("ix_measurements_date_utc", table_name="measurements")
    op.drop_index("ix_measurements_city", table_name="measurements")
    op.drop_index("uq_measurements_location_parameter_date_utc", table_name="measurements")
    op.drop_table("measurements")
