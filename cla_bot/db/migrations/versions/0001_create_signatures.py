"""create signatures

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:12:04.118204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "signatures",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("login_name", sa.String(length=250), nullable=False),
        sa.Column("email", sa.String(length=250), nullable=False),
        sa.Column("given_name", sa.String(length=250), nullable=False),
        sa.Column("cla_version", sa.String(length=10), nullable=False),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "login_name", "cla_version", name="uq_signature_login_version"
        ),
    )
    op.create_index(
        op.f("ix_signatures_login_name"), "signatures", ["login_name"], unique=False
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index(op.f("ix_signatures_login_name"), table_name="signatures")
    op.drop_table("signatures")
