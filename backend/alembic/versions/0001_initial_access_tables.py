"""Create users, businesses, team_members and activity_log.

Revision ID: 0001
Revises:
Create Date: 2026-10-19
"""

revision = "0001"
down_revision = None
branch_labels = None
depends_on = None

from alembic import op
import sqlalchemy as sa


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("hashed_password", sa.String(255)),
        sa.Column("full_name", sa.String(255), nullable=False),
        sa.Column(
            "user_type",
            sa.Enum("WORKER", "EMPLOYER", "ADMIN", name="usertype"),
            nullable=False,
            server_default="WORKER",
        ),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("must_change_password", sa.Boolean(), server_default=sa.false()),
        sa.Column("selected_business_id", sa.String(36)),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    op.create_table(
        "businesses",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("phone", sa.String(30)),
        sa.Column("email", sa.String(255)),
        sa.Column("is_active", sa.Boolean(), server_default=sa.true()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_businesses_owner_id", "businesses", ["owner_id"])

    # users <-> businesses cycle: add the selection FK once both tables exist
    op.create_foreign_key(
        "fk_users_selected_business_id",
        "users", "businesses",
        ["selected_business_id"], ["id"],
        ondelete="SET NULL",
    )

    op.create_table(
        "team_members",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "business_id", sa.String(36),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False, server_default="staff"),
        sa.Column("permissions", sa.JSON(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("invited_by_id", sa.String(36), sa.ForeignKey("users.id")),
        sa.Column("invited_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("joined_at", sa.DateTime()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now()),
        sa.UniqueConstraint("business_id", "user_id", name="uq_team_members_business_user"),
        sa.UniqueConstraint("business_id", "email", name="uq_team_members_business_email"),
    )
    op.create_index("ix_team_members_business_id", "team_members", ["business_id"])
    op.create_index("ix_team_members_user_id", "team_members", ["user_id"])

    op.create_table(
        "activity_log",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "business_id", sa.String(36),
            sa.ForeignKey("businesses.id", ondelete="CASCADE"), nullable=False,
        ),
        sa.Column("user_id", sa.String(36)),
        sa.Column("user_name", sa.String(255)),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(36)),
        sa.Column("summary", sa.Text()),
        sa.Column("details", sa.JSON()),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now()),
    )
    op.create_index("ix_activity_log_business_id", "activity_log", ["business_id"])
    op.create_index("ix_activity_log_created_at", "activity_log", ["created_at"])


def downgrade() -> None:
    op.drop_table("activity_log")
    op.drop_table("team_members")
    op.drop_constraint("fk_users_selected_business_id", "users", type_="foreignkey")
    op.drop_table("businesses")
    op.drop_table("users")
    sa.Enum(name="usertype").drop(op.get_bind(), checkfirst=True)
