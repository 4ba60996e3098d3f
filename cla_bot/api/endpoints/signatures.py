import secrets
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from pydantic import BaseModel, ConfigDict, Field
from sqlmodel.ext.asyncio.session import AsyncSession

from cla_bot.core.config import settings
from cla_bot.core.errors import DuplicateSignatureError
from cla_bot.core.logging import get_logger
from cla_bot.dependencies.database import get_db
from cla_bot.dependencies.github import get_github_auth
from cla_bot.integrations.github import GitHubAppAuth
from cla_bot.schemas.signature import User, UserSignature
from cla_bot.services.cla import (
    PullRequestEvaluator,
    SignatureStore,
    review_prior_pull_requests,
)

logger = get_logger(__name__)

router = APIRouter()

security = HTTPBasic()

HIDDEN_FIELD_VALUE = "hidden"


class SignClaRequest(BaseModel):
    """Body sent by the signing UI."""

    model_config = ConfigDict(populate_by_name=True)

    user: User
    cla_version: str = Field(alias="claVersion")


class SignatureResponse(BaseModel):
    """A stored signature, keyed the same way as SignClaRequest."""

    user: User
    cla_version: str = Field(serialization_alias="claVersion")
    time_signed: Optional[datetime] = Field(
        default=None, serialization_alias="timeSigned"
    )

    @classmethod
    def from_signature(
        cls, signature: UserSignature, user: Optional[User] = None
    ) -> "SignatureResponse":
        return cls(
            user=user or signature.user,
            cla_version=signature.cla_version,
            time_signed=signature.time_signed,
        )


def require_info_credentials(
    credentials: HTTPBasicCredentials = Depends(security),
) -> str:
    """Basic auth against INFO_USERNAME / INFO_PASSWORD, compared in constant time."""
    expected_username = settings.INFO_USERNAME or ""
    expected_password = settings.INFO_PASSWORD or ""

    username_ok = secrets.compare_digest(
        credentials.username.encode("utf-8"), expected_username.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        credentials.password.encode("utf-8"), expected_password.encode("utf-8")
    )
    if not (expected_username and username_ok and password_ok):
        logger.info("Failed info endpoint login: %s", credentials.username)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Basic"},
        )
    return credentials.username


@router.put("/sign-cla", status_code=status.HTTP_201_CREATED)
async def sign_cla(
    body: SignClaRequest,
    session: AsyncSession = Depends(get_db),
    github: GitHubAppAuth = Depends(get_github_auth),
) -> SignatureResponse:
    """
    Record a CLA signature, then re-evaluate the pull requests the user was
    blocking. A failed re-evaluation is reported, but the signature stays.
    """
    signature = UserSignature(
        user=body.user,
        cla_version=body.cla_version,
        time_signed=datetime.now(timezone.utc),
    )
    store = SignatureStore(session)

    try:
        await store.insert_signature(signature)
    except DuplicateSignatureError as e:
        logger.error("Failed to process sign cla: %s", str(e))
        raise HTTPException(status_code=400, detail=str(e)) from e

    try:
        await review_prior_pull_requests(
            PullRequestEvaluator(github, store), store, signature
        )
    except Exception as e:
        logger.error("Error reviewing prior PRs: %s", str(e), exc_info=True)
        raise HTTPException(
            status_code=500,
            detail=f"Signature recorded, but reviewing prior pull requests failed: {str(e)}",
        ) from e

    return SignatureResponse.from_signature(signature)


@router.get("/info/signature")
async def get_signature(
    login: Optional[str] = None,
    claversion: Optional[str] = None,
    session: AsyncSession = Depends(get_db),
    _username: str = Depends(require_info_credentials),
):
    """Look up a signature; personal fields are hidden from the response."""
    for name, value in (("login", login), ("claversion", claversion)):
        if not value:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail=f"missing required query parameter: {name}",
            )

    has_signed, found = await SignatureStore(session).has_signed(login, claversion)
    if not has_signed:
        return PlainTextResponse(f"cla version {claversion} not signed by {login}")

    hidden = User(
        login=found.user.login, email=HIDDEN_FIELD_VALUE, name=HIDDEN_FIELD_VALUE
    )
    return SignatureResponse.from_signature(found, user=hidden)
