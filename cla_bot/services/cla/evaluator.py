"""
Pull request evaluator.

Decides whether every commit author of a pull request has signed the CLA
and reports the outcome on GitHub through labels, a comment and a commit
status. Authors who still need to sign are tracked in the signature store
so the pull request can be re-evaluated once they do.

Every step runs in order; any GitHub or store error aborts the evaluation
and propagates to the caller, leaving the commit status wherever it got to
(usually "pending"). Each step is safe to repeat on the next event.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List

from cla_bot.core.errors import GitHubAPIError
from cla_bot.core.logging import get_logger
from cla_bot.integrations.github import GitHubAppAuth, GitHubClient
from cla_bot.schemas.github import PullRequestCommit
from cla_bot.schemas.signature import EvaluationInfo, User, UserSignature
from cla_bot.services.cla import messages
from cla_bot.services.cla.store import SignatureStore

logger = get_logger(__name__)


@dataclass
class CommitReview:
    """Commits of one pull request, bucketed by outcome."""

    missing_author: List[PullRequestCommit] = field(default_factory=list)
    missing_verification: List[PullRequestCommit] = field(default_factory=list)
    needs_signature: List[UserSignature] = field(default_factory=list)
    signed: List[UserSignature] = field(default_factory=list)

    @property
    def has_quality_issues(self) -> bool:
        return bool(self.missing_author or self.missing_verification)


def evaluation_info_from_payload(payload: Dict[str, Any], app_id: int) -> EvaluationInfo:
    """Extract the pull request identity from a pull_request webhook payload."""
    repo_data = payload.get("repository") or {}
    pr_data = payload.get("pull_request") or {}

    owner = (repo_data.get("owner") or {}).get("login") or repo_data.get(
        "full_name", ""
    ).split("/")[0]

    return EvaluationInfo(
        repo_owner=owner,
        repo_name=repo_data.get("name", ""),
        sha=(pr_data.get("head") or {}).get("sha", ""),
        pr_number=int(payload.get("number") or pr_data.get("number") or 0),
        app_id=app_id,
        install_id=int((payload.get("installation") or {}).get("id") or 0),
    )


class PullRequestEvaluator:
    def __init__(self, github: GitHubAppAuth, store: SignatureStore):
        """
        Args:
            github: Hands out the App (JWT) and installation clients.
            store: Signature store bound to this unit of work's session.
        """
        self.github = github
        self.store = store

    async def handle_pull_request(
        self, payload: Dict[str, Any], app_id: int, cla_version: str
    ) -> str:
        eval_info = evaluation_info_from_payload(payload, app_id)
        return await self.evaluate(eval_info, cla_version)

    async def evaluate(self, eval_info: EvaluationInfo, cla_version: str) -> str:
        """
        Evaluate one pull request and drive every side effect.

        Returns:
            The final commit status state ("success" or "failure").
        """
        logger.debug("Start authenticating with GitHub for %s", eval_info.display_name)

        app_client = await self.github.app_client(eval_info.app_id)
        installation = await app_client.get_installation(eval_info.install_id)
        bot_name = installation.app_slug

        client = await self.github.installation_client(
            eval_info.app_id, eval_info.install_id
        )
        await create_status(
            client,
            eval_info,
            messages.STATUS_PENDING,
            messages.DESCRIPTION_PENDING,
            bot_name,
        )

        commits = await client.list_pull_request_commits(
            eval_info.repo_owner, eval_info.repo_name, eval_info.pr_number
        )
        review = await self._review_commits(client, eval_info, commits, cla_version)

        logger.info(
            "Commits reviewed for %s: %d commits, missing author=%d, "
            "missing verification=%d, needs signature=%d, signed=%d",
            eval_info.display_name,
            len(commits),
            len(review.missing_author),
            len(review.missing_verification),
            len(review.needs_signature),
            len(review.signed),
        )

        # Quality issues take priority; a later synchronize event re-runs the
        # whole evaluation once they are fixed. Resolved authors are not
        # cleaned up on this path.
        if review.has_quality_issues:
            return await self._report_quality_issues(
                client, eval_info, review, bot_name
            )

        if review.needs_signature:
            await create_repo_label(client, eval_info, messages.LABEL_CLA_NOT_SIGNED)
            # PR may carry the "signed" label from an earlier evaluation
            await remove_label_from_issue_if_applied(
                client, eval_info, messages.LABEL_CLA_SIGNED
            )

            # track the authors, so the PR is re-evaluated after they sign
            eval_info.user_signatures = review.needs_signature
            await self.store.store_unsigned_authors(
                eval_info, datetime.now(timezone.utc)
            )

            app = await app_client.get_app()
            comment = messages.build_sign_cla_comment(
                [s.user.login for s in review.needs_signature], app.external_url
            )
            await add_comment_to_issue_if_not_exists(client, eval_info, comment)

            state = messages.STATUS_FAILURE
            await create_status(
                client, eval_info, state, messages.DESCRIPTION_CLA_FAILURE, bot_name
            )
        else:
            await create_repo_label(client, eval_info, messages.LABEL_CLA_SIGNED)
            await remove_label_from_issue_if_applied(
                client, eval_info, messages.LABEL_CLA_NOT_SIGNED
            )

            state = messages.STATUS_SUCCESS
            await create_status(
                client, eval_info, state, messages.DESCRIPTION_CLA_SUCCESS, bot_name
            )

        # a PR can be re-evaluated with both signed and unsigned authors, so
        # resolved authors are always cleaned up here
        await self.store.remove_resolved_authors(review.signed, eval_info)

        logger.info("Evaluated %s: %s", eval_info.display_name, state)
        return state

    async def _review_commits(
        self,
        client: GitHubClient,
        eval_info: EvaluationInfo,
        commits: List[PullRequestCommit],
        cla_version: str,
    ) -> CommitReview:
        review = CommitReview()
        # authors already classified in this evaluation
        seen = set()

        for commit in commits:
            # the author, not the committer: the committer can be the
            # GitHub web-flow user
            if not commit.author_login:
                review.missing_author.append(commit)
                continue

            if not commit.verified:
                logger.debug("Commit failed verification check: %s", commit.sha)
                review.missing_verification.append(commit)
                continue

            login = commit.author_login
            if login in seen:
                continue
            seen.add(login)

            if await client.is_collaborator(
                eval_info.repo_owner, eval_info.repo_name, login
            ):
                continue

            has_signed, signature = await self.store.has_signed(login, cla_version)
            if has_signed:
                review.signed.append(signature)
                continue

            logger.debug("Missing author signature: %s", login)
            review.needs_signature.append(
                UserSignature(
                    user=User(
                        login=login,
                        email=commit.author_email,
                        name=commit.author_name,
                    ),
                    cla_version=cla_version,
                )
            )

        return review

    async def _report_quality_issues(
        self,
        client: GitHubClient,
        eval_info: EvaluationInfo,
        review: CommitReview,
        bot_name: str,
    ) -> str:
        if review.missing_author:
            await create_repo_label(client, eval_info, messages.LABEL_COMMITS_NO_AUTHOR)
        if review.missing_verification:
            await create_repo_label(
                client, eval_info, messages.LABEL_COMMITS_MISSING_VERIFICATION
            )

        comment = messages.build_quality_comment(
            review.missing_author, review.missing_verification
        )
        await add_comment_to_issue_if_not_exists(client, eval_info, comment)

        state = messages.STATUS_FAILURE
        await create_status(
            client, eval_info, state, messages.DESCRIPTION_QUALITY_FAILURE, bot_name
        )
        logger.info(
            "Evaluated %s: quality requirements not met", eval_info.display_name
        )
        return state


async def create_status(
    client: GitHubClient,
    eval_info: EvaluationInfo,
    state: str,
    description: str,
    bot_name: str,
) -> None:
    await client.create_status(
        eval_info.repo_owner,
        eval_info.repo_name,
        eval_info.sha,
        state,
        description,
        bot_name,
    )


async def create_repo_label(
    client: GitHubClient, eval_info: EvaluationInfo, name: str
) -> None:
    """Make sure the label exists in the repository and is applied to the PR."""
    color, description = messages.LABELS[name]
    await create_repo_label_if_not_exists(client, eval_info, name, color, description)
    await add_label_to_issue_if_not_exists(client, eval_info, name)


async def create_repo_label_if_not_exists(
    client: GitHubClient,
    eval_info: EvaluationInfo,
    name: str,
    color: str,
    description: str,
) -> None:
    try:
        await client.get_label(eval_info.repo_owner, eval_info.repo_name, name)
        return
    except GitHubAPIError as e:
        if not e.is_not_found:
            raise

    logger.debug("Label %r doesn't exist, creating it", name)
    await client.create_label(
        eval_info.repo_owner, eval_info.repo_name, name, color, description
    )


async def add_label_to_issue_if_not_exists(
    client: GitHubClient, eval_info: EvaluationInfo, name: str
) -> None:
    issue_labels = await client.list_issue_labels(
        eval_info.repo_owner, eval_info.repo_name, eval_info.pr_number
    )
    if any(label.name == name for label in issue_labels):
        logger.debug("Label %r already on %s", name, eval_info.display_name)
        return

    # leaves every other label on the issue in place
    await client.add_labels_to_issue(
        eval_info.repo_owner, eval_info.repo_name, eval_info.pr_number, [name]
    )


async def remove_label_from_issue_if_applied(
    client: GitHubClient, eval_info: EvaluationInfo, name: str
) -> None:
    try:
        await client.remove_label_from_issue(
            eval_info.repo_owner, eval_info.repo_name, eval_info.pr_number, name
        )
    except GitHubAPIError as e:
        # the label was not applied
        if e.is_not_found:
            return
        raise
    logger.debug("Removed old label %r from %s", name, eval_info.display_name)


async def add_comment_to_issue_if_not_exists(
    client: GitHubClient, eval_info: EvaluationInfo, body: str
) -> bool:
    """Post the comment unless one with the exact same body exists. Returns True if posted."""
    comments = await client.list_issue_comments(
        eval_info.repo_owner, eval_info.repo_name, eval_info.pr_number
    )
    if any(comment.body == body for comment in comments):
        return False

    await client.create_issue_comment(
        eval_info.repo_owner, eval_info.repo_name, eval_info.pr_number, body
    )
    return True
