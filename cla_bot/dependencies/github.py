"""
CLA Bot GitHub Dependencies
"""

from cla_bot.integrations.github import GitHubAppAuth


def get_github_auth() -> GitHubAppAuth:
    """GitHub App credentials from the configured private key file."""
    return GitHubAppAuth()
