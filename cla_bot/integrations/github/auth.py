"""
GitHub App authentication utilities.

The evaluator needs two clients per evaluation: one authenticated as the App
(JWT) for installation metadata, and one authenticated with an installation
token for the repository operations. Tokens are minted per evaluation and
never cached.
"""

import time
from pathlib import Path
from typing import Optional

import httpx
import jwt

from cla_bot.core.config import settings
from cla_bot.core.errors import ConfigurationError
from cla_bot.integrations.github.client import (
    GitHubAppClient,
    GitHubClient,
    raise_for_github_status,
)


class GitHubAppAuth:
    """Mints GitHub App credentials from the private key file."""

    def __init__(
        self,
        private_key_path: Optional[str] = None,
        base_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.private_key_path = Path(private_key_path or settings.CLA_PEM_FILE)
        self.base_url = (base_url or settings.GITHUB_API_URL).rstrip("/")
        self.transport = transport

    def load_private_key(self) -> str:
        """Read the PEM key. A missing file is a configuration error."""
        try:
            return self.private_key_path.read_text()
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"GitHub App private key not found: {self.private_key_path}"
            ) from e

    def create_jwt(self, app_id: int) -> str:
        """Create the JWT (the "ID Badge" for the App)."""
        now = int(time.time())
        payload = {
            "iat": now - 60,
            "exp": now + (10 * 60),
            "iss": str(app_id),
        }
        return jwt.encode(payload, self.load_private_key(), algorithm="RS256")

    async def get_access_token(self, app_id: int, installation_id: int) -> str:
        """Exchanges Private Key + Installation ID for a temporary Token"""
        jwt_token = self.create_jwt(app_id)

        async with httpx.AsyncClient(transport=self.transport) as client:
            resp = await client.post(
                f"{self.base_url}/app/installations/{installation_id}/access_tokens",
                headers={
                    "Authorization": f"Bearer {jwt_token}",
                    "Accept": "application/vnd.github+json",
                },
            )
        raise_for_github_status(resp)
        return resp.json()["token"]

    async def app_client(self, app_id: int) -> GitHubAppClient:
        return GitHubAppClient(
            self.create_jwt(app_id), base_url=self.base_url, transport=self.transport
        )

    async def installation_client(
        self, app_id: int, installation_id: int
    ) -> GitHubClient:
        token = await self.get_access_token(app_id, installation_id)
        return GitHubClient(token, base_url=self.base_url, transport=self.transport)
