"""
GitHub REST API clients used by the CLA evaluator.

GitHubAppClient is authenticated as the App itself (JWT) and only reads App
and installation metadata. GitHubClient is authenticated with an
installation token and performs every per-repository operation.

Any non-2xx response raises GitHubAPIError. Neither client retries or
caches; that is left to the caller.
"""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx

from cla_bot.core.errors import GitHubAPIError
from cla_bot.schemas.github import (
    GitHubApp,
    Installation,
    IssueComment,
    Label,
    PullRequestCommit,
)

DEFAULT_BASE_URL = "https://api.github.com"


def raise_for_github_status(response: httpx.Response) -> None:
    """Raise GitHubAPIError for any non-2xx response."""
    if response.is_success:
        return

    try:
        message = response.json().get("message", "")
    except ValueError:
        message = response.text
    raise GitHubAPIError(response.status_code, message, str(response.request.url))


class _GitHubRestClient:
    """Shared plumbing: headers, error mapping and Link-header pagination."""

    auth_scheme = "token"

    def __init__(
        self,
        token: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            token: Installation token or App JWT, depending on the client.
            base_url: GitHub API root (GitHub Enterprise uses a different one).
            transport: Optional httpx transport, e.g. httpx.MockTransport in tests.
        """
        self.token = token
        self.base_url = base_url.rstrip("/")
        self.transport = transport
        self.headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": "The-CLA/1.0",
        }
        if token:
            self.headers["Authorization"] = f"{self.auth_scheme} {token}"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self.transport)

    async def _request(
        self, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        async with self._client() as client:
            response = await client.request(
                method, f"{self.base_url}{path}", headers=self.headers, **kwargs
            )
        raise_for_github_status(response)
        return response

    async def _get_all(self, path: str) -> List[Dict[str, Any]]:
        """GET every page of a list endpoint, following the Link header."""
        items: List[Dict[str, Any]] = []
        url: Optional[str] = f"{self.base_url}{path}"
        params: Optional[Dict[str, Any]] = {"per_page": 100}

        async with self._client() as client:
            while url:
                response = await client.get(url, headers=self.headers, params=params)
                raise_for_github_status(response)
                items.extend(response.json())
                url = response.links.get("next", {}).get("url")
                # the next link already carries the query string
                params = None

        return items


class GitHubAppClient(_GitHubRestClient):
    """Client authenticated as the GitHub App (JWT)."""

    auth_scheme = "Bearer"

    async def get_app(self) -> GitHubApp:
        """Get the authenticated GitHub App."""
        response = await self._request("GET", "/app")
        return GitHubApp.from_api(response.json())

    async def get_installation(self, installation_id: int) -> Installation:
        """Get an installation of the authenticated App."""
        response = await self._request("GET", f"/app/installations/{installation_id}")
        return Installation.from_api(response.json())


class GitHubClient(_GitHubRestClient):
    """Client authenticated with an installation token."""

    async def create_status(
        self,
        owner: str,
        repo: str,
        sha: str,
        state: str,
        description: str,
        context: str,
    ) -> Dict[str, Any]:
        """
        Create a commit status.

        Args:
            state: One of "pending", "success", "failure", "error".
            context: Label of the check shown in the PR (the App slug).
        """
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/statuses/{sha}",
            json={"state": state, "description": description, "context": context},
        )
        return response.json()

    async def is_collaborator(self, owner: str, repo: str, user: str) -> bool:
        """GitHub answers 204 for collaborators and 404 for everybody else."""
        try:
            await self._request(
                "GET", f"/repos/{owner}/{repo}/collaborators/{quote(user, safe='')}"
            )
        except GitHubAPIError as e:
            if e.is_not_found:
                return False
            raise
        return True

    async def list_pull_request_commits(
        self, owner: str, repo: str, pr_number: int
    ) -> List[PullRequestCommit]:
        items = await self._get_all(f"/repos/{owner}/{repo}/pulls/{pr_number}/commits")
        return [PullRequestCommit.from_api(item) for item in items]

    async def get_label(self, owner: str, repo: str, name: str) -> Label:
        """Get a repository label. Raises GitHubAPIError (404) if it does not exist."""
        response = await self._request(
            "GET", f"/repos/{owner}/{repo}/labels/{quote(name, safe='')}"
        )
        return Label.from_api(response.json())

    async def create_label(
        self, owner: str, repo: str, name: str, color: str, description: str
    ) -> Label:
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/labels",
            json={"name": name, "color": color, "description": description},
        )
        return Label.from_api(response.json())

    async def list_issue_labels(
        self, owner: str, repo: str, issue_number: int
    ) -> List[Label]:
        items = await self._get_all(f"/repos/{owner}/{repo}/issues/{issue_number}/labels")
        return [Label.from_api(item) for item in items]

    async def add_labels_to_issue(
        self, owner: str, repo: str, issue_number: int, labels: List[str]
    ) -> List[Label]:
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/labels",
            json={"labels": labels},
        )
        return [Label.from_api(item) for item in response.json()]

    async def remove_label_from_issue(
        self, owner: str, repo: str, issue_number: int, name: str
    ) -> None:
        """Raises GitHubAPIError (404) when the label is not applied to the issue."""
        await self._request(
            "DELETE",
            f"/repos/{owner}/{repo}/issues/{issue_number}/labels/{quote(name, safe='')}",
        )

    async def list_issue_comments(
        self, owner: str, repo: str, issue_number: int
    ) -> List[IssueComment]:
        items = await self._get_all(
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments"
        )
        return [IssueComment.from_api(item) for item in items]

    async def create_issue_comment(
        self, owner: str, repo: str, issue_number: int, body: str
    ) -> IssueComment:
        response = await self._request(
            "POST",
            f"/repos/{owner}/{repo}/issues/{issue_number}/comments",
            json={"body": body},
        )
        return IssueComment.from_api(response.json())
