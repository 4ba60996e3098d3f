"""
Signature and evaluation DTOs.

These are plain SQLModel classes (not tables) passed between the evaluator,
the signature store and the HTTP layer.
"""

import uuid
from datetime import datetime
from typing import List, Optional

from sqlmodel import SQLModel, Field


class User(SQLModel):
    """A GitHub user as recorded on a CLA signature."""

    login: str
    email: str = ""
    name: str = Field(default="", description="Given name of the user.")


class UserSignature(SQLModel):
    """
    A user paired with a CLA version.

    time_signed is only populated for stored signatures; unsigned authors
    collected during evaluation leave it empty.
    """

    user: User
    cla_version: str
    time_signed: Optional[datetime] = None


class EvaluationInfo(SQLModel):
    """Everything the evaluator needs to (re-)evaluate one pull request."""

    repo_owner: str
    repo_name: str
    sha: str
    pr_number: int
    app_id: int
    install_id: int
    unsigned_pr_id: Optional[uuid.UUID] = Field(
        default=None, description="Id of the tracked pull request row, if known."
    )
    user_signatures: List[UserSignature] = Field(default_factory=list)

    @property
    def display_name(self) -> str:
        return f"{self.repo_owner}/{self.repo_name} #{self.pr_number}"
