"""
GitHub integration package.
"""

from cla_bot.integrations.github.auth import GitHubAppAuth
from cla_bot.integrations.github.client import GitHubAppClient, GitHubClient

__all__ = [
    "GitHubAppAuth",
    "GitHubAppClient",
    "GitHubClient",
]
