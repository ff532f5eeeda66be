"""create portal tables

Revision ID: 0a1b2c3d4e5f
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "0a1b2c3d4e5f"
down_revision = None
branch_labels = None
depends_on = None

RECORD_TABLES = ("permits", "business_licenses", "tax_submissions", "bills", "service_applications")


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
    ]


def _record_columns() -> list[sa.Column]:
    return [
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False),
        sa.Column("payment_status", sa.String(length=20), nullable=False),
        sa.Column("base_amount_cents", sa.Integer(), nullable=False),
        sa.Column("service_fee_cents", sa.Integer(), nullable=True),
        sa.Column("total_amount_cents", sa.Integer(), nullable=True),
        sa.Column("payment_reference", sa.String(length=255), nullable=True),
        sa.Column("paid_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    ]


def upgrade() -> None:
    op.create_table(
        "merchants",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("merchant_name", sa.String(length=255), nullable=False),
        sa.Column("category", sa.String(length=100), nullable=True),
        sa.Column("subcategory", sa.String(length=100), nullable=True),
        sa.Column("statement_descriptor", sa.String(length=50), nullable=True),
        sa.Column("finix_merchant_id", sa.String(length=255), nullable=True),
        sa.Column("finix_identity_id", sa.String(length=255), nullable=True),
        sa.Column("verification_status", sa.String(length=30), nullable=False),
        sa.Column("processing_status", sa.String(length=30), nullable=False),
        sa.Column("onboarding_state", sa.String(length=30), nullable=True),
        sa.Column("processing_enabled", sa.Boolean(), nullable=False),
        sa.Column("settlement_enabled", sa.Boolean(), nullable=False),
        sa.Column("gateway_metadata", sa.JSON(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_merchants_finix_merchant_id", "merchants", ["finix_merchant_id"], unique=True
    )
    op.create_index("ix_merchants_finix_identity_id", "merchants", ["finix_identity_id"])

    op.create_table(
        "merchant_fee_profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=False),
        sa.Column("basis_points", sa.Integer(), nullable=False),
        sa.Column("fixed_fee", sa.Integer(), nullable=False),
        sa.Column("ach_basis_points", sa.Integer(), nullable=False),
        sa.Column("ach_fixed_fee", sa.Integer(), nullable=False),
        sa.Column("ach_basis_points_fee_limit", sa.Integer(), nullable=True),
        sa.Column("ach_debit_return_fixed_fee", sa.Integer(), nullable=False),
        sa.Column("ach_credit_return_fixed_fee", sa.Integer(), nullable=False),
        sa.Column("dispute_fixed_fee", sa.Integer(), nullable=False),
        sa.Column("dispute_inquiry_fixed_fee", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_merchant_fee_profiles_merchant_id",
        "merchant_fee_profiles",
        ["merchant_id"],
        unique=True,
    )

    op.create_table(
        "user_payment_instruments",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("instrument_type", sa.String(length=20), nullable=False),
        sa.Column("finix_payment_instrument_id", sa.String(length=255), nullable=False),
        sa.Column("enabled", sa.Boolean(), nullable=False),
        sa.Column("nickname", sa.String(length=100), nullable=True),
        sa.Column("wallet_type", sa.String(length=20), nullable=True),
        sa.Column("card_brand", sa.String(length=30), nullable=True),
        sa.Column("card_last_four", sa.String(length=4), nullable=True),
        sa.Column("card_expiration_month", sa.Integer(), nullable=True),
        sa.Column("card_expiration_year", sa.Integer(), nullable=True),
        sa.Column("bank_last_four", sa.String(length=4), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_user_payment_instruments_user_id", "user_payment_instruments", ["user_id"]
    )
    op.create_index(
        "ix_user_payment_instruments_finix_payment_instrument_id",
        "user_payment_instruments",
        ["finix_payment_instrument_id"],
    )

    op.create_table(
        "facilities",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.String(length=1000), nullable=True),
        sa.Column("booking_mode", sa.String(length=20), nullable=False),
        sa.Column("available_days", sa.JSON(), nullable=False),
        sa.Column("open_time", sa.Time(), nullable=False),
        sa.Column("close_time", sa.Time(), nullable=False),
        sa.Column("granularity_minutes", sa.Integer(), nullable=False),
        sa.Column("slot_duration_minutes", sa.Integer(), nullable=False),
        sa.Column("max_advance_days", sa.Integer(), nullable=False),
        sa.Column("base_fee_cents", sa.Integer(), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "permits",
        *_record_columns(),
        sa.Column("permit_type", sa.String(length=100), nullable=True),
    )
    op.create_table(
        "business_licenses",
        *_record_columns(),
        sa.Column("business_name", sa.String(length=255), nullable=True),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_table(
        "tax_submissions",
        *_record_columns(),
        sa.Column("tax_type", sa.String(length=100), nullable=True),
        sa.Column("tax_period", sa.String(length=50), nullable=True),
    )
    op.create_table(
        "bills",
        *_record_columns(),
        sa.Column("bill_number", sa.String(length=100), nullable=True),
        sa.Column("due_date", sa.Date(), nullable=True),
    )
    op.create_index("ix_bills_bill_number", "bills", ["bill_number"])
    op.create_table(
        "service_applications",
        *_record_columns(),
        sa.Column("facility_id", sa.String(length=36), nullable=True),
        sa.Column("booking_date", sa.Date(), nullable=True),
        sa.Column("start_time", sa.Time(), nullable=True),
        sa.Column("end_time", sa.Time(), nullable=True),
        sa.Column("service_type", sa.String(length=100), nullable=True),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"], ondelete="RESTRICT"),
    )
    op.create_index(
        "ix_service_applications_facility_date",
        "service_applications",
        ["facility_id", "booking_date"],
    )
    for table in RECORD_TABLES:
        op.create_index(f"ix_{table}_user_id", table, ["user_id"])

    op.create_table(
        "booking_slot_claims",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("facility_id", sa.String(length=36), nullable=False),
        sa.Column("booking_id", sa.String(length=36), nullable=False),
        sa.Column("booking_date", sa.Date(), nullable=False),
        sa.Column("slot_start", sa.Time(), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.ForeignKeyConstraint(["facility_id"], ["facilities.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["booking_id"], ["service_applications.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "facility_id", "booking_date", "slot_start", name="uq_booking_slot_claim"
        ),
    )
    op.create_index("ix_booking_slot_claims_facility_id", "booking_slot_claims", ["facility_id"])
    op.create_index("ix_booking_slot_claims_booking_id", "booking_slot_claims", ["booking_id"])

    op.create_table(
        "payment_attempts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("entity_kind", sa.String(length=30), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("base_amount_cents", sa.Integer(), nullable=False),
        sa.Column("service_fee_cents", sa.Integer(), nullable=False),
        sa.Column("total_amount_cents", sa.Integer(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("payment_instrument_id", sa.String(length=36), nullable=False),
        sa.Column("merchant_id", sa.String(length=36), nullable=True),
        sa.Column("finix_merchant_id", sa.String(length=255), nullable=True),
        sa.Column("fraud_session_id", sa.String(length=255), nullable=True),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("transfer_id", sa.String(length=255), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("failure_code", sa.String(length=100), nullable=True),
        sa.Column("failure_message", sa.Text(), nullable=True),
        *_timestamps(),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(
            ["payment_instrument_id"], ["user_payment_instruments.id"], ondelete="RESTRICT"
        ),
        sa.ForeignKeyConstraint(["merchant_id"], ["merchants.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_payment_attempts_idempotency_key",
        "payment_attempts",
        ["idempotency_key"],
        unique=True,
    )
    op.create_index("ix_payment_attempts_user_id", "payment_attempts", ["user_id"])
    op.create_index("ix_payment_attempts_entity_id", "payment_attempts", ["entity_id"])
    op.create_index("ix_payment_attempts_transfer_id", "payment_attempts", ["transfer_id"])

    op.create_table(
        "idempotency_records",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("request_method", sa.String(length=10), nullable=False),
        sa.Column("request_path", sa.String(length=500), nullable=False),
        sa.Column("response_status", sa.Integer(), nullable=True),
        sa.Column("response_body", sa.JSON(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "idempotency_key", name="uq_user_idempotency_key"),
    )
    op.create_index("ix_idempotency_records_user_id", "idempotency_records", ["user_id"])
    op.create_index(
        "ix_idempotency_records_idempotency_key", "idempotency_records", ["idempotency_key"]
    )

    op.create_table(
        "gateway_webhook_events",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("event_id", sa.String(length=255), nullable=True),
        sa.Column("event_type", sa.String(length=100), nullable=False),
        sa.Column("entity", sa.String(length=50), nullable=True),
        sa.Column("entity_id", sa.String(length=255), nullable=True),
        sa.Column("payload", sa.JSON(), nullable=True),
        sa.Column("status", sa.String(length=20), nullable=False),
        sa.Column("note", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("(CURRENT_TIMESTAMP)"),
            nullable=True,
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_gateway_webhook_events_event_id", "gateway_webhook_events", ["event_id"])
    op.create_index(
        "ix_gateway_webhook_events_entity_id", "gateway_webhook_events", ["entity_id"]
    )


def downgrade() -> None:
    op.drop_table("gateway_webhook_events")
    op.drop_table("idempotency_records")
    op.drop_table("payment_attempts")
    op.drop_table("booking_slot_claims")
    for table in reversed(RECORD_TABLES):
        op.drop_table(table)
    op.drop_table("facilities")
    op.drop_table("user_payment_instruments")
    op.drop_table("merchant_fee_profiles")
    op.drop_table("merchants")
