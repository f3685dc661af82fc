"""Initial schema: audit ledger plus the domain tables it reverses.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision = "001_initial_schema"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps(*names: str) -> list[sa.Column]:
    return [
        sa.Column(name, sa.DateTime(), nullable=False, server_default=sa.func.current_timestamp())
        for name in names
    ]


def upgrade() -> None:
    op.create_table(
        "audit_logs",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column(
            "action",
            sa.Enum(
                "CREATE", "UPDATE", "DELETE", "STATUS_CHANGE", "FULFILL", "APPROVE", "REJECT",
                name="audit_action_enum",
                create_constraint=True,
            ),
            nullable=False,
        ),
        sa.Column("entity_type", sa.String(length=50), nullable=False),
        sa.Column("entity_id", sa.String(length=36), nullable=False),
        sa.Column("entity_identifier", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("user_email", sa.String(length=255), nullable=False),
        sa.Column("user_role", sa.String(length=50), nullable=False),
        sa.Column("old_data", sa.JSON(), nullable=True),
        sa.Column("new_data", sa.JSON(), nullable=True),
        sa.Column("changed_fields", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("is_reversed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reversed_at", sa.DateTime(), nullable=True),
        sa.Column("reversed_by", sa.String(length=36), nullable=True),
        sa.Column("reversal_audit_id", sa.String(length=36), nullable=True),
        sa.Column("reversal_reason", sa.Text(), nullable=True),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_audit_logs_entity_type", "entity_type"),
        sa.Index("ix_audit_logs_entity_id", "entity_id"),
        sa.Index("ix_audit_logs_created_at", "created_at"),
    )

    op.create_table(
        "suppliers",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("contact_email", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "incoming_stock",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("supplier_id", sa.String(length=36), nullable=True),
        sa.Column("quality", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=100), nullable=True),
        sa.Column("invoice_number", sa.String(length=100), nullable=True),
        sa.Column("expected_meters", sa.Numeric(12, 2), nullable=False),
        sa.Column("received_meters", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column(
            "status",
            sa.Enum(
                "pending", "partially_received", "fully_received",
                name="stock_status_enum",
                create_constraint=True,
            ),
            nullable=False,
            server_default="pending",
        ),
        *_timestamps("created_at", "updated_at"),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_incoming_stock_supplier_id", "supplier_id"),
    )

    op.create_table(
        "lots",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("lot_number", sa.String(length=50), nullable=False),
        sa.Column("quality", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=100), nullable=False),
        sa.Column("meters", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("roll_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("supplier_id", sa.String(length=36), nullable=True),
        sa.Column("warehouse_location", sa.String(length=100), nullable=True),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="in_stock"),
        *_timestamps("created_at", "updated_at"),
        sa.ForeignKeyConstraint(["supplier_id"], ["suppliers.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_lots_lot_number", "lot_number"),
        sa.Index("ix_lots_supplier_id", "supplier_id"),
    )

    op.create_table(
        "rolls",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("lot_id", sa.String(length=36), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("meters", sa.Numeric(12, 2), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="available"),
        *_timestamps("created_at"),
        sa.ForeignKeyConstraint(["lot_id"], ["lots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_rolls_lot_id", "lot_id"),
    )

    op.create_table(
        "goods_in_receipts",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("incoming_stock_id", sa.String(length=36), nullable=True),
        sa.Column("received_by", sa.String(length=36), nullable=True),
        *_timestamps("received_at"),
        sa.ForeignKeyConstraint(["incoming_stock_id"], ["incoming_stock.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_goods_in_receipts_incoming_stock_id", "incoming_stock_id"),
    )

    op.create_table(
        "goods_in_rows",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("receipt_id", sa.String(length=36), nullable=False),
        sa.Column("lot_id", sa.String(length=36), nullable=False),
        sa.Column("roll_id", sa.String(length=36), nullable=True),
        *_timestamps("created_at"),
        sa.ForeignKeyConstraint(["receipt_id"], ["goods_in_receipts.id"]),
        sa.ForeignKeyConstraint(["lot_id"], ["lots.id"]),
        sa.ForeignKeyConstraint(["roll_id"], ["rolls.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_goods_in_rows_receipt_id", "receipt_id"),
        sa.Index("ix_goods_in_rows_lot_id", "lot_id"),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("order_number", sa.String(length=50), nullable=False),
        sa.Column("customer_name", sa.String(length=200), nullable=False),
        sa.Column("status", sa.String(length=30), nullable=False, server_default="pending"),
        sa.Column("fulfilled_at", sa.DateTime(), nullable=True),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("order_number"),
    )

    op.create_table(
        "order_lots",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("order_id", sa.String(length=36), nullable=False),
        sa.Column("lot_id", sa.String(length=36), nullable=False),
        sa.Column("roll_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("meters", sa.Numeric(12, 2), nullable=False, server_default="0"),
        *_timestamps("created_at"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"]),
        sa.ForeignKeyConstraint(["lot_id"], ["lots.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.Index("ix_order_lots_order_id", "order_id"),
        sa.Index("ix_order_lots_lot_id", "lot_id"),
    )

    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=200), nullable=True),
        sa.Column("role", sa.String(length=50), nullable=False, server_default="warehouse_staff"),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id"),
        sa.Index("ix_profiles_user_id", "user_id"),
    )

    op.create_table(
        "access_tokens",
        sa.Column("token", sa.String(length=255), nullable=False),
        sa.Column("user_id", sa.String(length=36), nullable=False),
        sa.Column("expires_at", sa.DateTime(), nullable=True),
        *_timestamps("created_at"),
        sa.PrimaryKeyConstraint("token"),
        sa.Index("ix_access_tokens_user_id", "user_id"),
    )


def downgrade() -> None:
    for table in (
        "access_tokens",
        "profiles",
        "order_lots",
        "orders",
        "goods_in_rows",
        "goods_in_receipts",
        "rolls",
        "lots",
        "incoming_stock",
        "suppliers",
        "audit_logs",
    ):
        op.drop_table(table)
    sa.Enum(name="stock_status_enum").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="audit_action_enum").drop(op.get_bind(), checkfirst=True)
