from alembic import op
import sqlalchemy as sa


revision = "0001_debt_ledger"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "warehouse_customers",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("phone", sa.String(length=50), nullable=True, index=True),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("address", sa.Text(), nullable=True),
        sa.Column("customer_type", sa.String(length=20), nullable=False, server_default="INDIVIDUAL"),
        sa.Column("credit_limit", sa.Numeric(12, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("total_credit_purchases", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("total_credit_amount", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("outstanding_debt", sa.Numeric(15, 2), nullable=False, server_default="0"),
        sa.Column("payment_reliability_score", sa.Numeric(5, 2), nullable=False, server_default="100"),
        sa.Column("last_payment_date", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
    )
    op.create_table(
        "warehouse_sales",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), nullable=True, index=True),
        sa.Column("receipt_number", sa.String(length=50), nullable=False, index=True),
        sa.Column("product_name", sa.String(length=255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("payment_method", sa.String(length=20), nullable=True),
        sa.Column("payment_status", sa.String(length=20), nullable=False, server_default="PAID"),
        sa.Column("credit_due_date", sa.DateTime(), nullable=True),
        sa.Column("credit_notes", sa.Text(), nullable=True),
        sa.Column("sales_officer", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["customer_id"], ["warehouse_customers.id"], ondelete="RESTRICT"),
    )
    op.create_table(
        "warehouse_debtors",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("customer_id", sa.Integer(), nullable=False, index=True),
        sa.Column("sale_id", sa.Integer(), nullable=False, unique=True),
        sa.Column("total_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("amount_paid", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("amount_due", sa.Numeric(12, 2), nullable=False),
        sa.Column("due_date", sa.DateTime(), nullable=True, index=True),
        sa.Column("status", sa.String(length=20), nullable=False, server_default="OUTSTANDING", index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.Column("version_id", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["customer_id"], ["warehouse_customers.id"], ondelete="RESTRICT"),
        sa.ForeignKeyConstraint(["sale_id"], ["warehouse_sales.id"], ondelete="RESTRICT"),
        sa.CheckConstraint("amount_due >= 0", name="ck_debtors_amount_due_non_negative"),
        sa.CheckConstraint("amount_paid >= 0", name="ck_debtors_amount_paid_non_negative"),
    )
    op.create_table(
        "warehouse_debtor_payments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("debt_id", sa.Integer(), nullable=False, index=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("payment_date", sa.DateTime(), nullable=False, index=True),
        sa.Column("reference_number", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("received_by", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["debt_id"], ["warehouse_debtors.id"], ondelete="RESTRICT"),
    )
    op.create_table(
        "cash_flow",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("transaction_type", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("payment_method", sa.String(length=20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("reference_number", sa.String(length=100), nullable=True, index=True),
        sa.Column("is_reconciled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reconciliation_date", sa.Date(), nullable=True),
        sa.Column("cashier", sa.Integer(), nullable=False, index=True),
        sa.Column("module", sa.String(length=20), nullable=False, server_default="WAREHOUSE", index=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now(), index=True),
    )
    op.create_table(
        "status_history",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("entity_type", sa.String(length=20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False, index=True),
        sa.Column("old_status", sa.String(length=50), nullable=True),
        sa.Column("new_status", sa.String(length=50), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
    )
    op.create_table(
        "receipt_counters",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("prefix", sa.String(length=10), nullable=False),
        sa.Column("day", sa.String(length=8), nullable=False, index=True),
        sa.Column("next_seq", sa.Integer(), nullable=False, server_default="1"),
        sa.UniqueConstraint("prefix", "day", name="uq_receipt_counters_prefix_day"),
    )


def downgrade() -> None:
    op.drop_table("receipt_counters")
    op.drop_table("status_history")
    op.drop_table("cash_flow")
    op.drop_table("warehouse_debtor_payments")
    op.drop_table("warehouse_debtors")
    op.drop_table("warehouse_sales")
    op.drop_table("warehouse_customers")
