"""Create companies, calls and extracted_insights tables.

Revision ID: 20260301000001
Revises:
Create Date: 2026-03-01 00:00:01.000000
"""

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "20260301000001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "companies",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
    )
    # Names are not unique; lookups are case-insensitive
    op.create_index("idx_companies_lower_name", "companies", [sa.text("lower(name)")])

    op.create_table(
        "calls",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "company_id",
            sa.BigInteger(),
            sa.ForeignKey("companies.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("transcript_text", sa.Text(), nullable=False),
        sa.Column("customer_name", sa.String(), nullable=True),
        sa.Column("call_summary", sa.Text(), nullable=True),
        sa.Column("call_date", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
    )
    op.create_index("idx_calls_company_id", "calls", ["company_id"])

    op.create_table(
        "extracted_insights",
        sa.Column("id", sa.BigInteger(), primary_key=True, autoincrement=True),
        sa.Column(
            "call_id",
            sa.BigInteger(),
            sa.ForeignKey("calls.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("pain_point_description", sa.Text(), nullable=False),
        sa.Column("raw_quote", sa.Text(), nullable=True),
        sa.Column("person_mentioned", sa.String(), nullable=True),
        sa.Column("urgency_level", sa.Integer(), nullable=False),
        sa.Column("mentioned_timeline", sa.String(), nullable=True),
        sa.Column("follow_up_date", sa.Date(), nullable=True),
        sa.Column("status", sa.String(), nullable=False, server_default="to_do"),
        sa.Column("created_at", sa.DateTime(), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("urgency_level BETWEEN 1 AND 5", name="ck_extracted_insights_urgency"),
    )
    op.create_index("idx_extracted_insights_call_id", "extracted_insights", ["call_id"])


def downgrade() -> None:
    op.drop_index("idx_extracted_insights_call_id", table_name="extracted_insights")
    op.drop_table("extracted_insights")
    op.drop_index("idx_calls_company_id", table_name="calls")
    op.drop_table("calls")
    op.drop_index("idx_companies_lower_name", table_name="companies")
    op.drop_table("companies")
