"""coffee orders schema

Revision ID: 0001_coffee_orders
Revises:
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa

revision = "0001_coffee_orders"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Enum("admin", "server", name="user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "menu_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("regular_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("sale_price", sa.Numeric(10, 2), nullable=True),
        sa.Column("availability", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("image_url", sa.String(length=255), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_table(
        "supplements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
    )
    op.create_table(
        "menu_item_supplements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("menu_item_id", sa.Integer(), sa.ForeignKey("menu_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("supplement_id", sa.Integer(), sa.ForeignKey("supplements.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("additional_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.UniqueConstraint("menu_item_id", "supplement_id", name="uq_menu_item_supplement"),
    )
    op.create_index("ix_menu_item_supplements_menu_item_id", "menu_item_supplements", ["menu_item_id"])

    op.create_table(
        "breakfasts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("availability", sa.Boolean(), nullable=False, server_default=sa.text("1")),
        sa.Column("image_url", sa.String(length=255), nullable=True),
    )
    op.create_table(
        "breakfast_option_groups",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("breakfast_id", sa.Integer(), sa.ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("max_selections", sa.Integer(), nullable=False, server_default=sa.text("1")),
    )
    op.create_index("ix_breakfast_option_groups_breakfast_id", "breakfast_option_groups", ["breakfast_id"])
    op.create_table(
        "breakfast_option_group_mappings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("breakfast_id", sa.Integer(), sa.ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "option_group_id",
            sa.Integer(),
            sa.ForeignKey("breakfast_option_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.UniqueConstraint("breakfast_id", "option_group_id", name="uq_breakfast_option_group_mapping"),
    )
    op.create_table(
        "breakfast_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "group_id",
            sa.Integer(),
            sa.ForeignKey("breakfast_option_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("breakfast_id", sa.Integer(), sa.ForeignKey("breakfasts.id", ondelete="CASCADE"), nullable=True),
        sa.Column("option_type", sa.String(length=100), nullable=False),
        sa.Column("option_name", sa.String(length=255), nullable=False),
        sa.Column("additional_price", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
    )
    op.create_index("ix_breakfast_options_group_id", "breakfast_options", ["group_id"])

    op.create_table(
        "promotions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("discount_percentage", sa.Numeric(5, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("menu_items.id", ondelete="SET NULL"), nullable=True),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.text("1")),
    )
    op.create_table(
        "tables",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("table_number", sa.Integer(), nullable=False, unique=True),
        sa.Column("capacity", sa.Integer(), nullable=False, server_default=sa.text("2")),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="available"),
    )

    op.create_table(
        "orders",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("total_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("order_type", sa.String(length=16), nullable=False),
        sa.Column("delivery_address", sa.Text(), nullable=True),
        sa.Column("promotion_id", sa.Integer(), sa.ForeignKey("promotions.id", ondelete="SET NULL"), nullable=True),
        sa.Column("table_id", sa.Integer(), sa.ForeignKey("tables.id", ondelete="SET NULL"), nullable=True),
        sa.Column("session_id", sa.String(length=128), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("status", sa.String(length=16), nullable=False, server_default="pending"),
        sa.Column("approved", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_orders_session_id", "orders", ["session_id"])
    op.create_index("ix_orders_created_at", "orders", ["created_at"])
    op.create_index("ix_orders_status", "orders", ["status"])

    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("item_id", sa.Integer(), sa.ForeignKey("menu_items.id"), nullable=True),
        sa.Column("breakfast_id", sa.Integer(), sa.ForeignKey("breakfasts.id"), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("supplement_id", sa.Integer(), sa.ForeignKey("supplements.id"), nullable=True),
        sa.CheckConstraint("(item_id IS NULL) <> (breakfast_id IS NULL)", name="ck_order_items_single_product"),
        sa.CheckConstraint("quantity > 0", name="ck_order_items_quantity_positive"),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_table(
        "breakfast_order_options",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("order_item_id", sa.Integer(), sa.ForeignKey("order_items.id", ondelete="CASCADE"), nullable=False),
        sa.Column("breakfast_option_id", sa.Integer(), sa.ForeignKey("breakfast_options.id"), nullable=False),
    )
    op.create_index("ix_breakfast_order_options_order_item_id", "breakfast_order_options", ["order_item_id"])

    op.create_table(
        "ingredients",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=255), nullable=False, unique=True),
        sa.Column("unit", sa.String(length=32), nullable=False),
        sa.Column("quantity_in_stock", sa.Numeric(12, 3), nullable=False, server_default=sa.text("0")),
        sa.Column("low_stock_threshold", sa.Numeric(12, 3), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint("quantity_in_stock >= 0", name="ck_ingredients_stock_non_negative"),
    )
    op.create_table(
        "stock_transactions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ingredient_id", sa.Integer(), sa.ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False),
        sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
        sa.Column("transaction_type", sa.Enum("addition", "deduction", name="stock_transaction_type"), nullable=False),
        sa.Column("order_id", sa.Integer(), sa.ForeignKey("orders.id", ondelete="SET NULL"), nullable=True),
        sa.Column("reason", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index(
        "uq_stock_transactions_order_ingredient_type_reason",
        "stock_transactions",
        ["order_id", "ingredient_id", "transaction_type", "reason"],
        unique=True,
    )
    op.create_index("ix_stock_transactions_order_type", "stock_transactions", ["order_id", "transaction_type"])

    for table_name, owner_column, owner_table, constraint in (
        ("menu_item_ingredients", "menu_item_id", "menu_items", "uq_menu_item_ingredient"),
        ("supplement_ingredients", "supplement_id", "supplements", "uq_supplement_ingredient"),
        ("breakfast_ingredients", "breakfast_id", "breakfasts", "uq_breakfast_ingredient"),
        ("breakfast_option_ingredients", "breakfast_option_id", "breakfast_options", "uq_breakfast_option_ingredient"),
    ):
        op.create_table(
            table_name,
            sa.Column("id", sa.Integer(), primary_key=True),
            sa.Column(owner_column, sa.Integer(), sa.ForeignKey(f"{owner_table}.id", ondelete="CASCADE"), nullable=False),
            sa.Column("ingredient_id", sa.Integer(), sa.ForeignKey("ingredients.id", ondelete="CASCADE"), nullable=False),
            sa.Column("quantity", sa.Numeric(12, 3), nullable=False),
            sa.UniqueConstraint(owner_column, "ingredient_id", name=constraint),
        )
        op.create_index(f"ix_{table_name}_{owner_column}", table_name, [owner_column])

    op.create_table(
        "device_order_limits",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("device_fingerprint", sa.String(length=64), nullable=False),
        sa.Column("order_timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("device_id", sa.String(length=64), nullable=False),
    )
    op.create_index(
        "ix_device_order_limits_fingerprint_ts",
        "device_order_limits",
        ["device_fingerprint", "order_timestamp"],
    )
    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("type", sa.String(length=32), nullable=False, server_default="order"),
        sa.Column("reference_id", sa.Integer(), nullable=True),
        sa.Column("message", sa.String(length=500), nullable=False),
        sa.Column("is_read", sa.Boolean(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )


def downgrade() -> None:
    op.drop_table("notifications")
    op.drop_index("ix_device_order_limits_fingerprint_ts", table_name="device_order_limits")
    op.drop_table("device_order_limits")
    for table_name in (
        "breakfast_option_ingredients",
        "breakfast_ingredients",
        "supplement_ingredients",
        "menu_item_ingredients",
    ):
        op.drop_table(table_name)
    op.drop_index("ix_stock_transactions_order_type", table_name="stock_transactions")
    op.drop_index("uq_stock_transactions_order_ingredient_type_reason", table_name="stock_transactions")
    op.drop_table("stock_transactions")
    op.drop_table("ingredients")
    op.drop_table("breakfast_order_options")
    op.drop_table("order_items")
    op.drop_index("ix_orders_status", table_name="orders")
    op.drop_index("ix_orders_created_at", table_name="orders")
    op.drop_index("ix_orders_session_id", table_name="orders")
    op.drop_table("orders")
    op.drop_table("tables")
    op.drop_table("promotions")
    op.drop_table("breakfast_options")
    op.drop_table("breakfast_option_group_mappings")
    op.drop_table("breakfast_option_groups")
    op.drop_table("breakfasts")
    op.drop_table("menu_item_supplements")
    op.drop_table("supplements")
    op.drop_table("menu_items")
    op.drop_index("ix_users_email", table_name="users")
    op.drop_table("users")
