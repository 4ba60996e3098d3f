"""
Database models package.

Import all models here so Alembic can discover them.
"""

from cla_bot.db.models.signature import Signature
from cla_bot.db.models.unsigned_pr import UnsignedAuthor, UnsignedPullRequest

__all__ = [
    "Signature",
    "UnsignedAuthor",
    "UnsignedPullRequest",
]
