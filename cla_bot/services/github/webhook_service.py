"""GitHub webhook handling: verification, payload parsing and event routing."""

import json
import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from cla_bot.core.config import settings
from cla_bot.core.errors import ConfigurationError
from cla_bot.integrations.github import GitHubAppAuth
from cla_bot.services.cla import PullRequestEvaluator, SignatureStore
from cla_bot.services.github.security import verify_signature

logger = logging.getLogger(__name__)

HANDLED_ACTIONS = ("opened", "reopened", "synchronize")

MSG_UNHANDLED_EVENT_TYPE = "I do not handle this type of event, sorry!"


async def handle_github_webhook(
    event_type: str,
    raw_body: bytes,
    signature_header: Optional[str],
    session_factory: async_sessionmaker[AsyncSession],
    github: GitHubAppAuth,
) -> dict:
    """
    Process a GitHub webhook delivery.

    - Verifies the HMAC SHA-256 signature when a webhook secret is configured.
    - pull_request opened/reopened/synchronize: evaluates the pull request.
    - Other pull_request actions: accepted without doing anything.
    - Other events: rejected.

    Args:
        event_type: The X-GitHub-Event header value (e.g. "push", "pull_request").
        raw_body: The raw body bytes for signature verification.
        signature_header: The X-Hub-Signature-256 header.
        session_factory: Opens the database session for this evaluation.
        github: GitHub App credentials used by the evaluator.

    Returns:
        A dict to be returned as the JSON response.
    """
    secret = settings.GITHUB_WEBHOOK_SECRET
    if secret and not verify_signature(raw_body, secret, signature_header):
        raise HTTPException(status_code=403, detail="Invalid signature")

    if event_type != "pull_request":
        logger.debug("Unsupported event type encountered: %s", event_type)
        raise HTTPException(status_code=400, detail=MSG_UNHANDLED_EVENT_TYPE)

    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=400, detail="Invalid JSON body") from e

    action = payload.get("action")
    if action not in HANDLED_ACTIONS:
        logger.debug(
            "Ignore pull request payload: action=%s, repo=%s, number=%s",
            action,
            (payload.get("repository") or {}).get("full_name"),
            payload.get("number"),
        )
        return {"message": f"No action taken for: {action}"}

    try:
        app_id = settings.get_app_id()
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    logger.info("Processing pull_request event: %s", action)

    async with session_factory() as session:
        evaluator = PullRequestEvaluator(github, SignatureStore(session))
        try:
            state = await evaluator.handle_pull_request(
                payload, app_id, settings.CLA_VERSION
            )
        except Exception as e:
            logger.error("Failed to handle pull request: %s", str(e), exc_info=True)
            raise HTTPException(
                status_code=500, detail=f"Evaluation failed: {str(e)}"
            ) from e

    return {"message": "accepted pull request for processing", "state": state}
