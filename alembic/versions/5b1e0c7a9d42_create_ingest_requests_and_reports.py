"""create ingest_requests and reports

Revision ID: 5b1e0c7a9d42
Revises:
Create Date: 2026-10-19 09:12:31.482107

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "5b1e0c7a9d42"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# SQLAlchemy's Enum type persists member names, not values
ingest_status = sa.Enum("QUEUED", "RUNNING", "SUCCEEDED", "FAILED", name="ingeststatus")
ingest_source = sa.Enum("YOUTUBE", "AUDIO", name="ingestsource")
report_kind = sa.Enum("DAILY", "WEEKLY", "MONTHLY", "QUARTERLY", name="reportkind")
report_status = sa.Enum("GENERATING", "READY", "FAILED", name="reportstatus")


def upgrade() -> None:
    """Create the ingest request table and the report ledger."""
    op.create_table(
        "ingest_requests",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("user_id", sa.String(), nullable=False),
        sa.Column("url", sa.String(), nullable=False),
        sa.Column("source", ingest_source, nullable=False),
        sa.Column("status", ingest_status, nullable=False, server_default="QUEUED"),
        sa.Column("stage", sa.String(), nullable=True),
        sa.Column("job_reference", sa.String(), nullable=True),
        sa.Column("episode_id", sa.String(), nullable=True),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("error_details", sa.JSON(), nullable=True),
        sa.Column("started_at", sa.DateTime(), nullable=True),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("url"),
    )
    op.create_index("ix_ingest_requests_user_id", "ingest_requests", ["user_id"])

    op.create_table(
        "reports",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("report_type", report_kind, nullable=False),
        sa.Column("date", sa.String(), nullable=False),
        sa.Column("period_start", sa.Date(), nullable=False),
        sa.Column("period_end", sa.Date(), nullable=False),
        sa.Column("status", report_status, nullable=False),
        sa.Column("generation_type", sa.String(), nullable=False),
        sa.Column("generated_by", sa.String(), nullable=True),
        sa.Column("job_reference", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("report_type", "date", name="uq_reports_type_date"),
    )


def downgrade() -> None:
    """Drop both tables (and their enum types on PostgreSQL)."""
    op.drop_table("reports")
    op.drop_index("ix_ingest_requests_user_id", table_name="ingest_requests")
    op.drop_table("ingest_requests")

    bind = op.get_bind()
    for enum_type in (report_status, report_kind, ingest_status, ingest_source):
        enum_type.drop(bind, checkfirst=True)
