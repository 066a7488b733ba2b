# This project was developed with assistance from AI tools.
"""add relief domain models

Revision ID: 3c1a9e7f2b10
Revises:
Create Date: 2026-10-19 09:12:41.508112

"""

import sqlalchemy as sa
from alembic import op

revision = "3c1a9e7f2b10"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "funds",
        sa.Column("code", sa.String(32), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("cv_type", sa.String(50), nullable=False),
        sa.Column("single_request_max", sa.Numeric(12, 2), nullable=False),
        sa.Column("twelve_month_max", sa.Numeric(12, 2), nullable=False),
        sa.Column("lifetime_max", sa.Numeric(12, 2), nullable=False),
        sa.Column("eligible_disasters", sa.JSON(), nullable=False),
        sa.Column("eligible_hardships", sa.JSON(), nullable=False),
        sa.Column("eligible_employment_types", sa.JSON(), nullable=False),
        sa.Column("allowed_domains", sa.JSON(), nullable=True),
        sa.Column("supported_languages", sa.JSON(), nullable=False),
        sa.Column("support_email", sa.String(255), nullable=True),
        sa.Column("support_phone", sa.String(50), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("code"),
    )

    op.create_table(
        "roster_records",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("fund_code", sa.String(32), nullable=False),
        sa.Column("employee_id", sa.String(64), nullable=False),
        sa.Column("birth_month", sa.Integer(), nullable=False),
        sa.Column("birth_day", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["fund_code"], ["funds.code"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("fund_code", "employee_id", name="uq_roster_fund_employee"),
    )
    op.create_index("ix_roster_records_fund_code", "roster_records", ["fund_code"])

    op.create_table(
        "user_profiles",
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("first_name", sa.String(100), nullable=False),
        sa.Column("last_name", sa.String(100), nullable=False),
        sa.Column("middle_name", sa.String(100), nullable=True),
        sa.Column("suffix", sa.String(20), nullable=True),
        sa.Column("mobile_number", sa.String(50), nullable=False),
        sa.Column("primary_address", sa.JSON(), nullable=True),
        sa.Column("mailing_address", sa.JSON(), nullable=True),
        sa.Column("is_mailing_address_same", sa.Boolean(), nullable=True),
        sa.Column("employment_start_date", sa.Date(), nullable=True),
        sa.Column("eligibility_type", sa.String(100), nullable=False),
        sa.Column("household_income", sa.Numeric(12, 2), nullable=True),
        sa.Column("household_size", sa.Integer(), nullable=True),
        sa.Column("homeowner", sa.String(3), nullable=True),
        sa.Column("preferred_language", sa.String(16), nullable=True),
        sa.Column("ack_policies", sa.Boolean(), nullable=False),
        sa.Column("comm_consent", sa.Boolean(), nullable=False),
        sa.Column("info_correct", sa.Boolean(), nullable=False),
        sa.Column("relief_queue_ticket", sa.String(64), nullable=True),
        sa.Column("active_identity_id", sa.String(200), nullable=True),
        sa.Column("fund_code", sa.String(32), nullable=True),
        sa.Column("fund_name", sa.String(255), nullable=True),
        sa.Column("class_verification_status", sa.String(50), nullable=False),
        sa.Column("eligibility_status", sa.String(50), nullable=False),
        sa.Column("role", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("uid"),
    )
    op.create_index("ix_user_profiles_email", "user_profiles", ["email"], unique=True)

    op.create_table(
        "fund_identities",
        sa.Column("id", sa.String(200), nullable=False),
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("fund_code", sa.String(32), nullable=False),
        sa.Column("fund_name", sa.String(255), nullable=False),
        sa.Column("cv_type", sa.String(50), nullable=False),
        sa.Column("class_verification_status", sa.String(50), nullable=False),
        sa.Column("eligibility_status", sa.String(50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["uid"], ["user_profiles.uid"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["fund_code"], ["funds.code"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("uid", "fund_code", name="uq_identity_user_fund"),
    )
    op.create_index("ix_fund_identities_uid", "fund_identities", ["uid"])

    op.create_table(
        "applications",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("uid", sa.String(128), nullable=False),
        sa.Column("fund_code", sa.String(32), nullable=False),
        sa.Column("profile_snapshot", sa.JSON(), nullable=False),
        sa.Column("event_data", sa.JSON(), nullable=False),
        sa.Column("requested_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("submitted_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(50), nullable=False),
        sa.Column("reasons", sa.JSON(), nullable=False),
        sa.Column("decisioned_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("twelve_month_grant_remaining", sa.Numeric(12, 2), nullable=False),
        sa.Column("lifetime_grant_remaining", sa.Numeric(12, 2), nullable=False),
        sa.Column("share_story", sa.Boolean(), nullable=False),
        sa.Column("receive_additional_info", sa.Boolean(), nullable=False),
        sa.Column("submitted_by", sa.String(128), nullable=False),
        sa.Column("is_proxy", sa.Boolean(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_applications_uid", "applications", ["uid"])
    op.create_index("ix_applications_fund_code", "applications", ["fund_code"])
    op.create_index("ix_applications_submitted_date", "applications", ["submitted_date"])
    op.create_index("ix_applications_submitted_by", "applications", ["submitted_by"])


def downgrade() -> None:
    op.drop_table("applications")
    op.drop_table("fund_identities")
    op.drop_index("ix_user_profiles_email", table_name="user_profiles")
    op.drop_table("user_profiles")
    op.drop_table("roster_records")
    op.drop_table("funds")
