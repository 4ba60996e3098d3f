"""
Exception types shared by the CLA bot.

Errors raised by the GitHub facade and the signature store propagate
unmodified through the evaluator; the HTTP layer maps them to responses.
"""

from typing import Optional


class ClaBotError(Exception):
    """Base class for all CLA bot errors."""


class ConfigurationError(ClaBotError):
    """Missing or unusable configuration (app id, private key file)."""


class GitHubAPIError(ClaBotError):
    """A GitHub REST call returned a non-2xx response."""

    def __init__(self, status_code: int, message: str, url: Optional[str] = None):
        super().__init__(f"GitHub API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.url = url

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class StoreError(ClaBotError):
    """The signature store could not honour its contract."""


class DuplicateSignatureError(StoreError):
    """The signature already exists, or the insert affected no rows."""


class ParentResolutionError(StoreError):
    """The tracked pull request id could not be determined."""
