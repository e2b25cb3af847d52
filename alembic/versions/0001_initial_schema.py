"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_initial_schema"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ID_TYPE = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("display_name", sa.String(length=100), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_users")),
        sa.UniqueConstraint("email", name=op.f("uq_users_email")),
    )
    op.create_table(
        "gacha_templates",
        sa.Column("id", sa.String(length=64), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("theme", sa.String(length=50), nullable=False),
        sa.Column("item_label", sa.String(length=50), nullable=False),
        sa.Column("tier1_count", sa.Integer(), nullable=False),
        sa.Column("tier2_count", sa.Integer(), nullable=False),
        sa.Column("tier3_count", sa.Integer(), nullable=False),
        sa.Column("tier4_count", sa.Integer(), nullable=False),
        sa.Column("tier5_count", sa.Integer(), nullable=False),
        sa.Column("is_system", sa.Boolean(), nullable=False),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("user_id", ID_TYPE, nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("tier1_count >= 0", name=op.f("ck_gacha_templates_tier1_count_non_negative")),
        sa.CheckConstraint("tier2_count >= 0", name=op.f("ck_gacha_templates_tier2_count_non_negative")),
        sa.CheckConstraint("tier3_count >= 0", name=op.f("ck_gacha_templates_tier3_count_non_negative")),
        sa.CheckConstraint("tier4_count >= 0", name=op.f("ck_gacha_templates_tier4_count_non_negative")),
        sa.CheckConstraint("tier5_count >= 0", name=op.f("ck_gacha_templates_tier5_count_non_negative")),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_gacha_templates_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_gacha_templates")),
    )
    op.create_index(
        op.f("ix_gacha_templates_user_id"), "gacha_templates", ["user_id"], unique=False
    )
    op.create_table(
        "gacha_results",
        sa.Column("id", ID_TYPE, autoincrement=True, nullable=False),
        sa.Column("user_id", ID_TYPE, nullable=False),
        sa.Column("template_id", sa.String(length=64), nullable=False),
        sa.Column("template_name", sa.String(length=255), nullable=False),
        sa.Column("item_id", sa.String(length=64), nullable=True),
        sa.Column("item_name", sa.String(length=255), nullable=False),
        sa.Column("tier", sa.Integer(), nullable=False),
        sa.Column("drawn_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_gacha_results_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_gacha_results")),
    )
    op.create_index(
        op.f("ix_gacha_results_user_id"), "gacha_results", ["user_id"], unique=False
    )
    op.create_index(
        "ix_gacha_results_user_drawn_at",
        "gacha_results",
        ["user_id", "drawn_at"],
        unique=False,
    )
    op.create_table(
        "session_states",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("template_id", sa.String(length=64), nullable=False),
        sa.Column("user_id", ID_TYPE, nullable=True),
        sa.Column("items", sa.JSON(), nullable=False),
        sa.Column("history", sa.JSON(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["user_id"],
            ["users.id"],
            name=op.f("fk_session_states_user_id_users"),
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_session_states")),
        sa.UniqueConstraint(
            "template_id", "user_id", name="uq_session_state_template_user"
        ),
    )
    op.create_index(
        op.f("ix_session_states_template_id"),
        "session_states",
        ["template_id"],
        unique=False,
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_session_states_template_id"), table_name="session_states")
    op.drop_table("session_states")
    op.drop_index("ix_gacha_results_user_drawn_at", table_name="gacha_results")
    op.drop_index(op.f("ix_gacha_results_user_id"), table_name="gacha_results")
    op.drop_table("gacha_results")
    op.drop_index(op.f("ix_gacha_templates_user_id"), table_name="gacha_templates")
    op.drop_table("gacha_templates")
    op.drop_table("users")
