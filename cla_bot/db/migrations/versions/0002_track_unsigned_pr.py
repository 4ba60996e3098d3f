"""track unsigned pull requests

Revision ID: 0002
Revises: 0001
Create Date: 2026-10-19 09:40:51.603377

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0002"
down_revision: Union[str, Sequence[str], None] = "0001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "unsigned_pr",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("repo_owner", sa.String(length=250), nullable=False),
        sa.Column("repo_name", sa.String(length=250), nullable=False),
        sa.Column("sha", sa.String(length=64), nullable=False),
        sa.Column("pr_number", sa.Integer(), nullable=False),
        sa.Column("app_id", sa.BigInteger(), nullable=False),
        sa.Column("install_id", sa.BigInteger(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("repo_name", "pr_number", name="uq_unsigned_pr_identity"),
    )
    op.create_table(
        "unsigned_user",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("unsigned_pr_id", sa.Uuid(), nullable=False),
        sa.Column("login_name", sa.String(length=250), nullable=False),
        sa.Column("email", sa.String(length=250), nullable=False),
        sa.Column("given_name", sa.String(length=250), nullable=False),
        sa.Column("cla_version", sa.String(length=10), nullable=False),
        sa.Column("checked_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["unsigned_pr_id"], ["unsigned_pr.id"]),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "unsigned_pr_id",
            "login_name",
            "cla_version",
            name="uq_unsigned_user_identity",
        ),
    )
    op.create_index(
        op.f("ix_unsigned_user_unsigned_pr_id"),
        "unsigned_user",
        ["unsigned_pr_id"],
        unique=False,
    )
    op.create_index(
        op.f("ix_unsigned_user_login_name"),
        "unsigned_user",
        ["login_name"],
        unique=False,
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_unsigned_user_login_name"), table_name="unsigned_user")
    op.drop_index(op.f("ix_unsigned_user_unsigned_pr_id"), table_name="unsigned_user")
    op.drop_table("unsigned_user")
    op.drop_table("unsigned_pr")
