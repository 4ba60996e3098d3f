"""
Labels, status descriptions and comment templates posted on pull requests.
"""

from typing import Iterable

from cla_bot.schemas.github import PullRequestCommit

LABEL_CLA_NOT_SIGNED = ":monocle_face: cla not signed"
LABEL_CLA_SIGNED = ":heart_eyes: cla signed"
LABEL_COMMITS_NO_AUTHOR = ":unamused: commits missing author"
LABEL_COMMITS_MISSING_VERIFICATION = ":anguished: commits missing verification"

# name -> (color, description)
LABELS = {
    LABEL_CLA_NOT_SIGNED: ("ff3333", "The CLA needs to be signed"),
    LABEL_CLA_SIGNED: ("66CC00", "The CLA is signed"),
    LABEL_COMMITS_NO_AUTHOR: (
        "B60205",
        "Commits are missing author information - this must be resolved",
    ),
    LABEL_COMMITS_MISSING_VERIFICATION: (
        "B60205",
        "Some commits are not signed - this must be resolved",
    ),
}

STATUS_PENDING = "pending"
STATUS_SUCCESS = "success"
STATUS_FAILURE = "failure"

DESCRIPTION_PENDING = "The CLA verifier is running"
DESCRIPTION_QUALITY_FAILURE = "One or more commits haven't met our Quality requirements."
DESCRIPTION_CLA_FAILURE = "One or more contributors need to sign the CLA"
DESCRIPTION_CLA_SUCCESS = "All contributors have signed the CLA"

QUALITY_COMMENT_TEMPLATE = """Thanks for the contribution. Unfortunately some of your commits don't meet our standards. All commits must be signed and have author information set.

The commits to review are:

{commits}"""

SIGN_CLA_COMMENT_TEMPLATE = (
    "Thanks for the contribution. Before we can merge this, we need {users} "
    "to [sign the Contributor License Agreement]({sign_url})"
)


def build_quality_comment(
    missing_author: Iterable[PullRequestCommit],
    missing_verification: Iterable[PullRequestCommit],
) -> str:
    """One comment listing every offending commit, annotated by violation."""
    lines = []
    for commit in missing_author:
        lines.append(
            f'- <a href="{commit.html_url}">{commit.sha}</a> - missing author :cop:\n'
        )
    for commit in missing_verification:
        lines.append(
            f'- <a href="{commit.html_url}">{commit.sha}</a> - unsigned commit :key:\n'
        )
    return QUALITY_COMMENT_TEMPLATE.format(commits="".join(lines))


def build_sign_cla_comment(logins: Iterable[str], sign_url: str) -> str:
    users = ", ".join(f"@{login}" for login in logins)
    return SIGN_CLA_COMMENT_TEMPLATE.format(users=users, sign_url=sign_url)
