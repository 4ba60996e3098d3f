import os

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("GITHUB_APP_ID", "12345")
os.environ.setdefault("CLA_VERSION", "1.0")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

from typing import Dict, List, Optional

import pytest
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

import cla_bot.db.models  # noqa: F401  registers the tables on SQLModel.metadata
from cla_bot.core.errors import GitHubAPIError
from cla_bot.schemas.github import (
    GitHubApp,
    Installation,
    IssueComment,
    Label,
    PullRequestCommit,
)
from cla_bot.services.cla import SignatureStore

APP_ID = 12345
INSTALL_ID = 777
CLA_VERSION = "1.0"
SIGN_URL = "https://cla.example.com/sign"


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def store(session):
    return SignatureStore(session)


def make_commit(
    sha: str,
    login: Optional[str],
    verified: bool = True,
    email: str = "",
    name: str = "",
) -> PullRequestCommit:
    return PullRequestCommit(
        sha=sha,
        html_url=f"https://github.com/octo/widgets/commit/{sha}",
        author_login=login,
        author_email=email or (f"{login}@example.com" if login else ""),
        author_name=name or (login or ""),
        verified=verified,
    )


def pull_request_payload(action: str = "opened", number: int = 7) -> dict:
    return {
        "action": action,
        "number": number,
        "pull_request": {"number": number, "head": {"sha": "abc123"}},
        "repository": {
            "name": "widgets",
            "full_name": "octo/widgets",
            "owner": {"login": "octo"},
        },
        "installation": {"id": INSTALL_ID},
    }


class FakeGitHub:
    """
    In-memory stand-in for one repository on GitHub.

    Records every write so tests can assert on statuses, labels and comments.
    Errors can be injected per method through ``failures``.
    """

    def __init__(self):
        self.app_slug = "the-cla"
        self.external_url = SIGN_URL
        self.collaborators = set()
        self.commits: List[PullRequestCommit] = []
        self.repo_labels: Dict[str, Label] = {}
        self.issue_labels: List[str] = []
        self.comments: List[str] = []
        self.statuses: List[dict] = []
        self.calls: List[tuple] = []
        self.failures: Dict[str, Exception] = {}

    def _call(self, name: str, *args):
        self.calls.append((name,) + args)
        if name in self.failures:
            raise self.failures[name]

    def called(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def app_client(self, app_id: int) -> "FakeAppClient":
        self._call("app_client", app_id)
        return FakeAppClient(self)

    async def installation_client(
        self, app_id: int, installation_id: int
    ) -> "FakeRepoClient":
        self._call("installation_client", app_id, installation_id)
        return FakeRepoClient(self)


class FakeAppClient:
    def __init__(self, github: FakeGitHub):
        self.github = github

    async def get_app(self) -> GitHubApp:
        self.github._call("get_app")
        return GitHubApp(slug=self.github.app_slug, external_url=self.github.external_url)

    async def get_installation(self, installation_id: int) -> Installation:
        self.github._call("get_installation", installation_id)
        return Installation(
            id=installation_id, app_id=APP_ID, app_slug=self.github.app_slug
        )


class FakeRepoClient:
    def __init__(self, github: FakeGitHub):
        self.github = github

    async def create_status(self, owner, repo, sha, state, description, context):
        self.github._call("create_status", owner, repo, sha, state)
        self.github.statuses.append(
            {"sha": sha, "state": state, "description": description, "context": context}
        )
        return {"state": state}

    async def is_collaborator(self, owner, repo, user) -> bool:
        self.github._call("is_collaborator", user)
        return user in self.github.collaborators

    async def list_pull_request_commits(self, owner, repo, pr_number):
        self.github._call("list_pull_request_commits", pr_number)
        return list(self.github.commits)

    async def get_label(self, owner, repo, name) -> Label:
        self.github._call("get_label", name)
        if name not in self.github.repo_labels:
            raise GitHubAPIError(404, "Not Found")
        return self.github.repo_labels[name]

    async def create_label(self, owner, repo, name, color, description) -> Label:
        self.github._call("create_label", name)
        label = Label(name=name, color=color, description=description)
        self.github.repo_labels[name] = label
        return label

    async def list_issue_labels(self, owner, repo, issue_number):
        self.github._call("list_issue_labels", issue_number)
        return [self.github.repo_labels[name] for name in self.github.issue_labels]

    async def add_labels_to_issue(self, owner, repo, issue_number, labels):
        self.github._call("add_labels_to_issue", issue_number, tuple(labels))
        self.github.issue_labels.extend(labels)
        return [self.github.repo_labels[name] for name in self.github.issue_labels]

    async def remove_label_from_issue(self, owner, repo, issue_number, name):
        self.github._call("remove_label_from_issue", issue_number, name)
        if name not in self.github.issue_labels:
            raise GitHubAPIError(404, "Label does not exist")
        self.github.issue_labels.remove(name)

    async def list_issue_comments(self, owner, repo, issue_number):
        self.github._call("list_issue_comments", issue_number)
        return [
            IssueComment(id=i, body=body) for i, body in enumerate(self.github.comments)
        ]

    async def create_issue_comment(self, owner, repo, issue_number, body):
        self.github._call("create_issue_comment", issue_number)
        self.github.comments.append(body)
        return IssueComment(id=len(self.github.comments), body=body)


@pytest.fixture
def github():
    return FakeGitHub()
