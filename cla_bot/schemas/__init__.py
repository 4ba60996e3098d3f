"""
Schema and DTO package.
"""

from cla_bot.schemas.signature import EvaluationInfo, User, UserSignature
from cla_bot.schemas.github import (
    GitHubApp,
    Installation,
    IssueComment,
    Label,
    PullRequestCommit,
)

__all__ = [
    "EvaluationInfo",
    "User",
    "UserSignature",
    "GitHubApp",
    "Installation",
    "IssueComment",
    "Label",
    "PullRequestCommit",
]
