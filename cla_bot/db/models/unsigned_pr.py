"""
Unsigned Pull Request Models

A tracked pull request (UnsignedPullRequest) is blocked on one or more
authors (UnsignedAuthor) who have not signed the CLA yet. The evaluator is
the only writer of these tables.
"""

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import BigInteger, Column, DateTime, UniqueConstraint


class UnsignedPullRequest(SQLModel, table=True):
    """
    Tracked pull request.

    Composite unique key: (repo_name, pr_number)
    """

    __tablename__ = "unsigned_pr"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        nullable=False,
    )
    repo_owner: str = Field(max_length=250)
    repo_name: str = Field(max_length=250)
    sha: str = Field(max_length=64, description="Head commit of the pull request")
    pr_number: int = Field(description="GitHub PR number")
    app_id: int = Field(sa_column=Column(BigInteger, nullable=False))
    install_id: int = Field(sa_column=Column(BigInteger, nullable=False))

    authors: List["UnsignedAuthor"] = Relationship(back_populates="pull_request")

    __table_args__ = (
        UniqueConstraint("repo_name", "pr_number", name="uq_unsigned_pr_identity"),
    )


class UnsignedAuthor(SQLModel, table=True):
    """
    Author of a tracked pull request who still has to sign the CLA.

    Composite unique key: (unsigned_pr_id, login_name, cla_version)
    """

    __tablename__ = "unsigned_user"

    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        nullable=False,
    )
    unsigned_pr_id: uuid.UUID = Field(
        foreign_key="unsigned_pr.id", index=True, nullable=False
    )
    login_name: str = Field(max_length=250, index=True)
    email: str = Field(default="", max_length=250)
    given_name: str = Field(default="", max_length=250)
    cla_version: str = Field(max_length=10)
    checked_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    pull_request: Optional[UnsignedPullRequest] = Relationship(
        back_populates="authors"
    )

    __table_args__ = (
        UniqueConstraint(
            "unsigned_pr_id",
            "login_name",
            "cla_version",
            name="uq_unsigned_user_identity",
        ),
    )
