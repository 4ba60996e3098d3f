"""
Typed results returned by the GitHub client facade.
"""

from typing import Any, Dict, Optional

from sqlmodel import SQLModel


class GitHubApp(SQLModel):
    """The authenticated GitHub App."""

    slug: str = ""
    name: str = ""
    external_url: str = ""
    html_url: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "GitHubApp":
        return cls(
            slug=data.get("slug") or "",
            name=data.get("name") or "",
            external_url=data.get("external_url") or "",
            html_url=data.get("html_url") or "",
        )


class Installation(SQLModel):
    """An installation of the GitHub App on an account."""

    id: int
    app_id: Optional[int] = None
    app_slug: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Installation":
        return cls(
            id=data["id"],
            app_id=data.get("app_id"),
            app_slug=data.get("app_slug") or "",
        )


class Label(SQLModel):
    name: str
    color: str = ""
    description: Optional[str] = None

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "Label":
        return cls(
            name=data["name"],
            color=data.get("color") or "",
            description=data.get("description"),
        )


class IssueComment(SQLModel):
    id: int
    body: str = ""

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "IssueComment":
        return cls(id=data["id"], body=data.get("body") or "")


class PullRequestCommit(SQLModel):
    """
    A commit listed on a pull request.

    author_login comes from the GitHub user linked to the commit author and is
    None when GitHub could not attribute the commit. The committer is ignored:
    for web edits it is the GitHub web-flow user, not the contributor.
    """

    sha: str
    html_url: str = ""
    author_login: Optional[str] = None
    author_email: str = ""
    author_name: str = ""
    verified: bool = False

    @classmethod
    def from_api(cls, data: Dict[str, Any]) -> "PullRequestCommit":
        author = data.get("author") or {}
        commit = data.get("commit") or {}
        git_author = commit.get("author") or {}
        verification = commit.get("verification") or {}

        return cls(
            sha=data["sha"],
            html_url=data.get("html_url") or "",
            author_login=author.get("login"),
            author_email=author.get("email") or git_author.get("email") or "",
            author_name=author.get("name") or git_author.get("name") or "",
            verified=bool(verification.get("verified", False)),
        )
