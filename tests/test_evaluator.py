import pytest
from sqlmodel import select

from cla_bot.core.errors import GitHubAPIError
from cla_bot.db.models import UnsignedAuthor, UnsignedPullRequest
from cla_bot.schemas.signature import EvaluationInfo, User, UserSignature
from cla_bot.services.cla import PullRequestEvaluator, messages
from cla_bot.services.cla.evaluator import evaluation_info_from_payload

from conftest import (
    APP_ID,
    CLA_VERSION,
    INSTALL_ID,
    SIGN_URL,
    make_commit,
    pull_request_payload,
)


@pytest.fixture
def evaluator(github, store):
    return PullRequestEvaluator(github, store)


@pytest.fixture
def lookups(store, monkeypatch):
    """Logins the evaluator looked up in the signature store."""
    seen = []
    has_signed = store.has_signed

    async def recording_has_signed(login, cla_version):
        seen.append(login)
        return await has_signed(login, cla_version)

    monkeypatch.setattr(store, "has_signed", recording_has_signed)
    return seen


def _eval_info() -> EvaluationInfo:
    return EvaluationInfo(
        repo_owner="octo",
        repo_name="widgets",
        sha="abc123",
        pr_number=7,
        app_id=APP_ID,
        install_id=INSTALL_ID,
    )


async def _rows(session, model):
    return (await session.exec(select(model))).all()


async def _sign(store, login: str):
    await store.insert_signature(
        UserSignature(user=User(login=login), cla_version=CLA_VERSION)
    )


def test_evaluation_info_from_payload():
    eval_info = evaluation_info_from_payload(pull_request_payload(number=42), APP_ID)

    assert eval_info.repo_owner == "octo"
    assert eval_info.repo_name == "widgets"
    assert eval_info.sha == "abc123"
    assert eval_info.pr_number == 42
    assert eval_info.app_id == APP_ID
    assert eval_info.install_id == INSTALL_ID
    assert eval_info.unsigned_pr_id is None
    assert eval_info.user_signatures == []


async def test_collaborator_exempt_and_unsigned_author_blocks(
    evaluator, github, session, lookups
):
    github.collaborators.add("alice")
    github.commits = [make_commit("c1", "alice"), make_commit("c2", "bob")]

    state = await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert state == messages.STATUS_FAILURE
    assert [s["state"] for s in github.statuses] == ["pending", "failure"]
    assert github.statuses[-1]["description"] == messages.DESCRIPTION_CLA_FAILURE
    assert all(s["context"] == "the-cla" for s in github.statuses)
    assert github.issue_labels == [messages.LABEL_CLA_NOT_SIGNED]
    assert github.comments == [
        "Thanks for the contribution. Before we can merge this, we need @bob "
        f"to [sign the Contributor License Agreement]({SIGN_URL})"
    ]
    # collaborators never reach the signature store
    assert lookups == ["bob"]

    parents = await _rows(session, UnsignedPullRequest)
    assert len(parents) == 1
    assert parents[0].pr_number == 7
    authors = await _rows(session, UnsignedAuthor)
    assert [(a.login_name, a.cla_version) for a in authors] == [("bob", CLA_VERSION)]
    assert authors[0].email == "bob@example.com"


async def test_repeated_evaluation_does_not_duplicate(evaluator, github, session):
    github.commits = [make_commit("c1", "bob")]

    await evaluator.evaluate(_eval_info(), CLA_VERSION)
    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert len(github.comments) == 1
    assert len(github.called("create_label")) == 1
    assert len(github.called("add_labels_to_issue")) == 1
    assert github.issue_labels == [messages.LABEL_CLA_NOT_SIGNED]
    assert [s["state"] for s in github.statuses] == [
        "pending",
        "failure",
        "pending",
        "failure",
    ]
    assert len(await _rows(session, UnsignedPullRequest)) == 1
    assert len(await _rows(session, UnsignedAuthor)) == 1


async def test_reevaluation_after_signing_succeeds(evaluator, github, store, session):
    github.commits = [make_commit("c1", "bob")]
    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    await _sign(store, "bob")
    state = await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert state == messages.STATUS_SUCCESS
    assert github.statuses[-1]["state"] == "success"
    assert github.statuses[-1]["description"] == messages.DESCRIPTION_CLA_SUCCESS
    assert github.issue_labels == [messages.LABEL_CLA_SIGNED]
    assert ("remove_label_from_issue", 7, messages.LABEL_CLA_NOT_SIGNED) in github.calls
    assert await _rows(session, UnsignedAuthor) == []
    assert await _rows(session, UnsignedPullRequest) == []


async def test_partial_signing_keeps_pull_request_tracked(
    evaluator, github, store, session
):
    github.commits = [make_commit("c1", "bob"), make_commit("c2", "carol")]
    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    await _sign(store, "bob")
    state = await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert state == messages.STATUS_FAILURE
    authors = await _rows(session, UnsignedAuthor)
    assert [a.login_name for a in authors] == ["carol"]
    assert len(await _rows(session, UnsignedPullRequest)) == 1
    # the second comment only mentions carol
    assert "@carol" in github.comments[-1]
    assert "@bob" not in github.comments[-1]


async def test_all_collaborators_succeeds(evaluator, github, session, lookups):
    github.collaborators.update({"alice", "dave"})
    github.commits = [make_commit("c1", "alice"), make_commit("c2", "dave")]

    state = await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert state == messages.STATUS_SUCCESS
    assert lookups == []
    assert github.issue_labels == [messages.LABEL_CLA_SIGNED]
    assert github.comments == []
    # removing a label that was never applied is not an error
    assert ("remove_label_from_issue", 7, messages.LABEL_CLA_NOT_SIGNED) in github.calls
    assert await _rows(session, UnsignedPullRequest) == []


async def test_new_unsigned_author_replaces_signed_label(evaluator, github, session):
    github.collaborators.add("alice")
    github.commits = [make_commit("c1", "alice")]
    assert await evaluator.evaluate(_eval_info(), CLA_VERSION) == messages.STATUS_SUCCESS
    assert github.issue_labels == [messages.LABEL_CLA_SIGNED]

    github.commits.append(make_commit("c2", "bob"))
    state = await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert state == messages.STATUS_FAILURE
    assert github.statuses[-1]["state"] == "failure"
    assert github.issue_labels == [messages.LABEL_CLA_NOT_SIGNED]
    assert ("remove_label_from_issue", 7, messages.LABEL_CLA_SIGNED) in github.calls
    authors = await _rows(session, UnsignedAuthor)
    assert [a.login_name for a in authors] == ["bob"]


async def test_each_author_is_checked_once(evaluator, github, lookups):
    github.commits = [
        make_commit("c1", "bob"),
        make_commit("c2", "bob"),
        make_commit("c3", "bob"),
    ]

    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert lookups == ["bob"]
    assert len(github.called("is_collaborator")) == 1
    assert github.comments[0].count("@bob") == 1


async def test_unverified_commit_fails_quality_gate(evaluator, github, session, lookups):
    github.commits = [make_commit("c1", "bob", verified=False)]

    state = await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert state == messages.STATUS_FAILURE
    assert [s["state"] for s in github.statuses] == ["pending", "failure"]
    assert github.statuses[-1]["description"] == messages.DESCRIPTION_QUALITY_FAILURE
    assert github.issue_labels == [messages.LABEL_COMMITS_MISSING_VERIFICATION]
    assert len(github.comments) == 1
    assert (
        '- <a href="https://github.com/octo/widgets/commit/c1">c1</a> '
        "- unsigned commit :key:" in github.comments[0]
    )
    assert github.called("is_collaborator") == []
    assert lookups == []
    assert await _rows(session, UnsignedPullRequest) == []


async def test_missing_author_is_not_checked_for_verification(evaluator, github):
    github.commits = [make_commit("c1", None, verified=False)]

    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert github.issue_labels == [messages.LABEL_COMMITS_NO_AUTHOR]
    assert "missing author :cop:" in github.comments[0]
    assert "unsigned commit" not in github.comments[0]


async def test_quality_gate_takes_priority_over_signatures(evaluator, github, session):
    github.commits = [
        make_commit("c1", None),
        make_commit("c2", "carol", verified=False),
        make_commit("c3", "bob"),
    ]

    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert github.issue_labels == [
        messages.LABEL_COMMITS_NO_AUTHOR,
        messages.LABEL_COMMITS_MISSING_VERIFICATION,
    ]
    comment = github.comments[0]
    assert comment.index("missing author :cop:") < comment.index("unsigned commit :key:")
    assert messages.LABEL_CLA_NOT_SIGNED not in github.issue_labels
    # bob was classified but never tracked
    assert await _rows(session, UnsignedAuthor) == []


async def test_quality_gate_skips_cleanup(evaluator, github, store, session):
    github.commits = [make_commit("c1", "bob")]
    await evaluator.evaluate(_eval_info(), CLA_VERSION)
    await _sign(store, "bob")

    github.commits.append(make_commit("c2", None))
    await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert len(await _rows(session, UnsignedAuthor)) == 1


async def test_commit_listing_error_leaves_status_pending(evaluator, github):
    github.failures["list_pull_request_commits"] = GitHubAPIError(500, "boom")

    with pytest.raises(GitHubAPIError):
        await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert [s["state"] for s in github.statuses] == ["pending"]


async def test_installation_error_aborts_before_any_status(evaluator, github):
    github.failures["get_installation"] = GitHubAPIError(404, "Not Found")

    with pytest.raises(GitHubAPIError):
        await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert github.statuses == []


async def test_label_lookup_error_other_than_not_found_propagates(evaluator, github):
    github.commits = [make_commit("c1", "bob")]
    github.failures["get_label"] = GitHubAPIError(403, "Forbidden")

    with pytest.raises(GitHubAPIError) as excinfo:
        await evaluator.evaluate(_eval_info(), CLA_VERSION)

    assert excinfo.value.status_code == 403
    assert github.called("create_label") == []


async def test_label_removal_error_other_than_not_found_propagates(evaluator, github):
    github.commits = [make_commit("c1", "bob")]
    github.failures["remove_label_from_issue"] = GitHubAPIError(500, "boom")

    with pytest.raises(GitHubAPIError):
        await evaluator.evaluate(_eval_info(), CLA_VERSION)


async def test_handle_pull_request_uses_payload(evaluator, github):
    github.collaborators.add("alice")
    github.commits = [make_commit("c1", "alice")]

    state = await evaluator.handle_pull_request(
        pull_request_payload(number=11), APP_ID, CLA_VERSION
    )

    assert state == messages.STATUS_SUCCESS
    assert ("installation_client", APP_ID, INSTALL_ID) in github.calls
    assert ("list_pull_request_commits", 11) in github.calls
    assert github.statuses[0]["sha"] == "abc123"
