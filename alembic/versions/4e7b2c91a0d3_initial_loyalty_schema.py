from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID


revision = "4e7b2c91a0d3"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "users"):
        op.create_table(
            "users",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("password_hash", sa.String(length=255), nullable=False),
            sa.Column("full_name", sa.String(length=120), nullable=False),
            sa.Column("phone", sa.String(length=20), nullable=True),
            sa.Column("cep", sa.String(length=9), nullable=True),
            sa.Column("street", sa.String(length=255), nullable=True),
            sa.Column("number", sa.String(length=30), nullable=True),
            sa.Column("complement", sa.String(length=120), nullable=True),
            sa.Column("neighborhood", sa.String(length=120), nullable=True),
            sa.Column("city", sa.String(length=120), nullable=True),
            sa.Column("state", sa.String(length=2), nullable=True),
            sa.Column("address", sa.Text(), nullable=True),
            sa.Column("is_admin", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("email_confirmed_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )
        op.create_index("ix_users_email", "users", ["email"], unique=True)

    if not _table_exists(bind, "loyalty_codes"):
        op.create_table(
            "loyalty_codes",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("code", sa.String(length=12), nullable=False),
            sa.Column("email", sa.String(length=255), nullable=False),
            sa.Column("created_by", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("used_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("used_by", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=True),
        )
        op.create_index("ix_loyalty_codes_code", "loyalty_codes", ["code"], unique=True)
        op.create_index("ix_loyalty_codes_email", "loyalty_codes", ["email"])

    if not _table_exists(bind, "purchases"):
        op.create_table(
            "purchases",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("transaction_id", sa.String(length=100), nullable=False, unique=True),
            sa.Column("amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
            sa.Column("purchased_at", sa.TIMESTAMP(), nullable=False),
            sa.Column("verified", sa.Boolean(), nullable=False, server_default=sa.false()),
        )
        op.create_index("ix_purchases_user_id", "purchases", ["user_id"])

    if not _table_exists(bind, "rewards"):
        op.create_table(
            "rewards",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("user_id", UUID(as_uuid=True), sa.ForeignKey("users.id"), nullable=False),
            sa.Column("reward_type", sa.String(length=100), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("expiry_date", sa.TIMESTAMP(), nullable=True),
            sa.Column("claimed_at", sa.TIMESTAMP(), nullable=True),
        )
        op.create_index("ix_rewards_user_id", "rewards", ["user_id"])
        op.create_index(
            "uq_rewards_user_active",
            "rewards",
            ["user_id"],
            unique=True,
            postgresql_where=sa.text("claimed_at IS NULL"),
        )

    if not _table_exists(bind, "products"):
        op.create_table(
            "products",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=200), nullable=False),
            sa.Column("description", sa.Text(), nullable=False, server_default=""),
            sa.Column("price", sa.Numeric(10, 2), nullable=False),
            sa.Column("promotional_price", sa.Numeric(10, 2), nullable=True),
            sa.Column("promotion_end_date", sa.TIMESTAMP(), nullable=True),
            sa.Column("image_url", sa.String(length=500), nullable=False),
            sa.Column("category", sa.String(length=100), nullable=False),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("tags", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )

    if not _table_exists(bind, "product_images"):
        op.create_table(
            "product_images",
            sa.Column("id", UUID(as_uuid=True), primary_key=True, nullable=False),
            sa.Column(
                "product_id",
                UUID(as_uuid=True),
                sa.ForeignKey("products.id", ondelete="CASCADE"),
                nullable=False,
            ),
            sa.Column("image_url", sa.String(length=500), nullable=False),
            sa.Column("display_order", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.UniqueConstraint("product_id", "display_order", name="uq_product_images_product_order"),
        )
        op.create_index("ix_product_images_product_id", "product_images", ["product_id"])


def downgrade() -> None:
    bind = op.get_bind()

    for table_name in ("product_images", "products", "rewards", "purchases", "loyalty_codes", "users"):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
