from alembic import op
import sqlalchemy as sa


revision = "5e1c7a9b2d40"
down_revision = None
branch_labels = None
depends_on = None


def _table_exists(bind, table_name: str) -> bool:
    insp = sa.inspect(bind)
    return table_name in insp.get_table_names()


def upgrade() -> None:
    bind = op.get_bind()

    if not _table_exists(bind, "cards"):
        op.create_table(
            "cards",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("card_id", sa.String(length=64), nullable=False),
            sa.Column("name", sa.String(length=100), nullable=True),
            sa.Column("surname", sa.String(length=100), nullable=True),
            sa.Column("age", sa.Integer(), nullable=True),
            sa.Column("gender", sa.String(length=10), nullable=True),
            sa.Column("email", sa.String(length=255), nullable=True),
            sa.Column("phone", sa.String(length=50), nullable=True),
            sa.Column("activated_at", sa.TIMESTAMP(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.UniqueConstraint("card_id", name="uq_cards_card_id"),
        )

    if not _table_exists(bind, "shops"):
        op.create_table(
            "shops",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("name", sa.String(length=100), nullable=False),
            sa.Column("pin_digest", sa.String(length=64), nullable=False),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.UniqueConstraint("pin_digest", name="uq_shops_pin_digest"),
        )

    if not _table_exists(bind, "promotions"):
        op.create_table(
            "promotions",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("title", sa.String(length=150), nullable=False),
            sa.Column("description", sa.String(length=500), nullable=False),
            sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
            sa.Column("usage_limit", sa.String(length=20), nullable=False, server_default="Unlimited"),
            sa.Column("target_gender", sa.String(length=10), nullable=False, server_default="All"),
            sa.Column("target_age_min", sa.Integer(), nullable=False, server_default="0"),
            sa.Column("target_age_max", sa.Integer(), nullable=False, server_default="99"),
            sa.Column("target_mode", sa.String(length=20), nullable=False, server_default="All"),
            sa.Column("target_users", sa.JSON(), nullable=True),
            sa.Column("requires_activation", sa.Boolean(), nullable=False, server_default=sa.false()),
            sa.Column("shops", sa.JSON(), nullable=True),
            sa.Column("created_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.Column("updated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
        )

    if not _table_exists(bind, "promo_activations"):
        op.create_table(
            "promo_activations",
            sa.Column("id", sa.Uuid(as_uuid=True), primary_key=True, nullable=False),
            sa.Column("card_id", sa.String(length=64), sa.ForeignKey("cards.card_id"), nullable=False),
            sa.Column(
                "promotion_id",
                sa.Uuid(as_uuid=True),
                sa.ForeignKey("promotions.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("activated_by", sa.String(length=10), nullable=False),
            sa.Column(
                "shop_id",
                sa.Uuid(as_uuid=True),
                sa.ForeignKey("shops.id", ondelete="SET NULL"),
                nullable=True,
            ),
            sa.Column("exclusive_slot", sa.String(length=10), nullable=True),
            sa.Column("activated_at", sa.TIMESTAMP(), server_default=sa.text("now()"), nullable=True),
            sa.UniqueConstraint(
                "card_id",
                "promotion_id",
                "exclusive_slot",
                name="uq_promo_activations_card_promotion_slot",
            ),
        )

    insp = sa.inspect(bind)
    indexes = {ix["name"] for ix in insp.get_indexes("promo_activations")}
    if "ix_promo_activations_promotion_id" not in indexes:
        op.create_index(
            "ix_promo_activations_promotion_id",
            "promo_activations",
            ["promotion_id", "activated_at"],
        )


def downgrade() -> None:
    bind = op.get_bind()

    if _table_exists(bind, "promo_activations"):
        insp = sa.inspect(bind)
        indexes = {ix["name"] for ix in insp.get_indexes("promo_activations")}
        if "ix_promo_activations_promotion_id" in indexes:
            op.drop_index("ix_promo_activations_promotion_id", table_name="promo_activations")
        op.drop_table("promo_activations")

    for table_name in ("promotions", "shops", "cards"):
        if _table_exists(bind, table_name):
            op.drop_table(table_name)
