from alembic import op
import sqlalchemy as sa


revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column("id", sa.Integer(), primary_key=True, index=True)


def _created_at() -> sa.Column:
    return sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now())


def upgrade() -> None:
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False, index=True),
        sa.Column("org_type", sa.String(20), nullable=False, server_default="client"),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.UniqueConstraint("slug", name="uq_organization_slug"),
    )
    op.create_table(
        "zones",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.UniqueConstraint("name", name="uq_zones_name"),
    )
    op.create_table(
        "sales_representatives",
        _id(),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("email", sa.String(255), nullable=True),
        sa.Column("zone_id", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "users",
        _id(),
        sa.Column("email", sa.String(255), nullable=False, index=True),
        sa.Column("hashed_password", sa.String(255), nullable=False),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("role", sa.String(20), nullable=False, server_default="client"),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("sales_representative_id", sa.Integer(), nullable=True),
        sa.Column("approval_status", sa.String(20), nullable=False, server_default="pending", index=True),
        sa.Column("rejection_reason", sa.String(500), nullable=True),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.Column("approved_by", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["sales_representative_id"], ["sales_representatives.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["approved_by"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("email", name="uq_users_email"),
    )
    op.create_table(
        "crate_types",
        _id(),
        sa.Column("code", sa.String(20), nullable=False, index=True),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("is_consignable", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("deposit_amount", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.UniqueConstraint("code", name="uq_crate_types_code"),
    )
    op.create_table(
        "products",
        _id(),
        sa.Column("reference", sa.String(100), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("category", sa.String(50), nullable=False, index=True),
        sa.Column("brand", sa.String(100), nullable=True),
        sa.Column("crate_type", sa.String(20), nullable=False),
        sa.Column("unit", sa.String(50), nullable=False, server_default="casier"),
        sa.Column("volume", sa.String(50), nullable=True),
        sa.Column("crate_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("consign_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.UniqueConstraint("reference", name="uq_products_reference"),
    )
    op.create_table(
        "establishment_products",
        _id(),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), nullable=False, index=True),
        sa.Column("selling_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("min_stock_alert", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("organization_id", "product_id", name="uq_establishment_products_org_product"),
    )
    op.create_table(
        "order_counters",
        _id(),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("kind", sa.String(20), nullable=False, server_default="order"),
        sa.Column("next_seq", sa.Integer(), nullable=False, server_default="1"),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("organization_id", "kind", name="uq_order_counters_org_kind"),
    )
    op.create_table(
        "supplier_zones",
        _id(),
        sa.Column("supplier_id", sa.Integer(), nullable=False, index=True),
        sa.Column("zone_id", sa.Integer(), nullable=False, index=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("approved_at", sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(["supplier_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("supplier_id", "zone_id", name="uq_supplier_zones_supplier_zone"),
    )
    op.create_table(
        "zone_registration_requests",
        _id(),
        sa.Column("supplier_id", sa.Integer(), nullable=False, index=True),
        sa.Column("zone_id", sa.Integer(), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("message", sa.Text(), nullable=True),
        sa.Column("admin_response", sa.Text(), nullable=True),
        sa.Column("reviewed_by", sa.Integer(), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["supplier_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "orders",
        _id(),
        sa.Column("order_number", sa.String(20), nullable=False, index=True),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("client_id", sa.Integer(), nullable=False, index=True),
        sa.Column("supplier_id", sa.Integer(), nullable=True, index=True),
        sa.Column("zone_id", sa.Integer(), nullable=True, index=True),
        sa.Column("status", sa.String(30), nullable=False, server_default="pending", index=True),
        sa.Column("delivery_address", sa.String(500), nullable=False),
        sa.Column("payment_method", sa.String(30), nullable=False, server_default="cash"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("consigne_total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("client_commission", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("supplier_commission", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("net_supplier_amount", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("paid_at", sa.DateTime(), nullable=True),
        sa.Column("delivered_at", sa.DateTime(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["client_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["supplier_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["zone_id"], ["zones.id"]),
        sa.UniqueConstraint("organization_id", "order_number", name="uq_orders_org_number"),
    )
    op.create_table(
        "order_items",
        _id(),
        sa.Column("order_id", sa.Integer(), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("with_consigne", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("crate_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("consign_price", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"]),
    )
    op.create_table(
        "supplier_offers",
        _id(),
        sa.Column("order_id", sa.Integer(), nullable=False, index=True),
        sa.Column("supplier_id", sa.Integer(), nullable=False, index=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("total_amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("delivery_time_minutes", sa.Integer(), nullable=True),
        sa.Column("message", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["supplier_id"], ["users.id"]),
    )
    op.create_table(
        "ratings",
        _id(),
        sa.Column("order_id", sa.Integer(), nullable=False, index=True),
        sa.Column("rater_id", sa.Integer(), nullable=False),
        sa.Column("rated_id", sa.Integer(), nullable=False),
        sa.Column("score", sa.Integer(), nullable=False),
        sa.Column("comment", sa.Text(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["rater_id"], ["users.id"]),
        sa.ForeignKeyConstraint(["rated_id"], ["users.id"]),
        sa.UniqueConstraint("order_id", "rater_id", name="uq_ratings_order_rater"),
    )
    op.create_table(
        "daily_sheets",
        _id(),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("sheet_date", sa.Date(), nullable=False, index=True),
        sa.Column("status", sa.String(10), nullable=False, server_default="open"),
        sa.Column("opening_cash", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("closing_cash", sa.Numeric(14, 2), nullable=True),
        sa.Column("theoretical_revenue", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("cash_difference", sa.Numeric(14, 2), nullable=True),
        sa.Column("expenses_total", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("credit_sales", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("credit_payments", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("credit_balance_eod", sa.Numeric(14, 2), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("closed_at", sa.DateTime(), nullable=True),
        sa.Column("closed_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["closed_by"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint("organization_id", "sheet_date", name="uq_daily_sheets_org_date"),
    )
    op.create_table(
        "daily_stock_lines",
        _id(),
        sa.Column("daily_sheet_id", sa.Integer(), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("initial_stock", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("ravito_supply", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("external_supply", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("final_stock", sa.Integer(), nullable=True),
        sa.Column("closed_price", sa.Numeric(12, 2), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(["daily_sheet_id"], ["daily_sheets.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("daily_sheet_id", "product_id", name="uq_daily_stock_lines_sheet_product"),
    )
    op.create_table(
        "daily_packaging",
        _id(),
        sa.Column("daily_sheet_id", sa.Integer(), nullable=False, index=True),
        sa.Column("crate_type", sa.String(20), nullable=False),
        sa.Column("qty_full_start", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qty_empty_start", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qty_received", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qty_returned", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qty_consignes_paid", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("qty_full_end", sa.Integer(), nullable=True),
        sa.Column("qty_empty_end", sa.Integer(), nullable=True),
        sa.Column("notes", sa.String(500), nullable=True),
        sa.ForeignKeyConstraint(["daily_sheet_id"], ["daily_sheets.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("daily_sheet_id", "crate_type", name="uq_daily_packaging_sheet_crate"),
    )
    op.create_table(
        "daily_expenses",
        _id(),
        sa.Column("daily_sheet_id", sa.Integer(), nullable=False, index=True),
        sa.Column("label", sa.String(255), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("category", sa.String(20), nullable=False, server_default="other"),
        _created_at(),
        sa.ForeignKeyConstraint(["daily_sheet_id"], ["daily_sheets.id"], ondelete="CASCADE"),
    )
    op.create_table(
        "status_history",
        _id(),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("entity_type", sa.String(20), nullable=False),
        sa.Column("entity_id", sa.Integer(), nullable=False, index=True),
        sa.Column("old_status", sa.String(50), nullable=True),
        sa.Column("new_status", sa.String(50), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("user_email", sa.String(255), nullable=False),
        sa.Column("notes", sa.String(500), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_table(
        "credit_customers",
        _id(),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("phone", sa.String(20), nullable=True),
        sa.Column("address", sa.String(500), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("credit_limit", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("current_balance", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_credited", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("total_paid", sa.Numeric(14, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="active"),
        sa.Column("freeze_reason", sa.String(500), nullable=True),
        sa.Column("frozen_at", sa.DateTime(), nullable=True),
        sa.Column("last_payment_date", sa.Date(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
    )
    op.create_table(
        "credit_transactions",
        _id(),
        sa.Column("organization_id", sa.Integer(), nullable=False, index=True),
        sa.Column("customer_id", sa.Integer(), nullable=False, index=True),
        sa.Column("daily_sheet_id", sa.Integer(), nullable=True, index=True),
        sa.Column("transaction_type", sa.String(20), nullable=False),
        sa.Column("amount", sa.Numeric(14, 2), nullable=False),
        sa.Column("payment_method", sa.String(20), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("transaction_date", sa.Date(), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["organization_id"], ["organizations.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["customer_id"], ["credit_customers.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["daily_sheet_id"], ["daily_sheets.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
    )
    op.create_table(
        "credit_transaction_items",
        _id(),
        sa.Column("transaction_id", sa.Integer(), nullable=False, index=True),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("product_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(12, 2), nullable=False),
        sa.Column("subtotal", sa.Numeric(14, 2), nullable=False),
        sa.ForeignKeyConstraint(["transaction_id"], ["credit_transactions.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
    )


def downgrade() -> None:
    for table in (
        "credit_transaction_items",
        "credit_transactions",
        "credit_customers",
        "status_history",
        "daily_expenses",
        "daily_packaging",
        "daily_stock_lines",
        "daily_sheets",
        "ratings",
        "supplier_offers",
        "order_items",
        "orders",
        "zone_registration_requests",
        "supplier_zones",
        "order_counters",
        "establishment_products",
        "products",
        "crate_types",
        "users",
        "sales_representatives",
        "zones",
        "organizations",
    ):
        op.drop_table(table)
