from typing import Optional

from fastapi import APIRouter, Depends, Header, Request, status
from sqlalchemy.ext.asyncio import async_sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession

from cla_bot.dependencies.database import get_session_factory
from cla_bot.dependencies.github import get_github_auth
from cla_bot.integrations.github import GitHubAppAuth
from cla_bot.services.github import webhook_service

router = APIRouter()


@router.post("/webhook-integration", status_code=status.HTTP_202_ACCEPTED)
async def handle_github_webhook(
    request: Request,
    x_github_event: str = Header(...),
    x_hub_signature_256: Optional[str] = Header(None),
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    github: GitHubAppAuth = Depends(get_github_auth),
):
    """
    Handle GitHub webhook deliveries.

    Args:
        request: The incoming HTTP request.
        x_github_event: The GitHub event type (e.g., 'push', 'pull_request').
        x_hub_signature_256: HMAC SHA-256 signature of the body.

    Returns:
        A JSON response describing what was done with the event.
    """
    raw_body = await request.body()
    return await webhook_service.handle_github_webhook(
        event_type=x_github_event,
        raw_body=raw_body,
        signature_header=x_hub_signature_256,
        session_factory=session_factory,
        github=github,
    )
