"""
Signature Model

Stores one signed CLA per user and CLA version.
Key: (login_name, cla_version)
"""

import uuid
from datetime import datetime, timezone

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, UniqueConstraint

from cla_bot.schemas.signature import User, UserSignature


class Signature(SQLModel, table=True):
    """
    Signatures table.

    Rows are append-only: a signature is never updated or deleted.
    """

    __tablename__ = "signatures"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        nullable=False,
    )
    login_name: str = Field(max_length=250, index=True)
    email: str = Field(default="", max_length=250)
    given_name: str = Field(default="", max_length=250)
    cla_version: str = Field(max_length=10)
    signed_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    __table_args__ = (
        UniqueConstraint("login_name", "cla_version", name="uq_signature_login_version"),
    )

    def to_user_signature(self) -> UserSignature:
        return UserSignature(
            user=User(login=self.login_name, email=self.email, name=self.given_name),
            cla_version=self.cla_version,
            time_signed=self.signed_at,
        )
