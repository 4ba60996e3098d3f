"""
Signature store.

Persistence for CLA signatures and for pull requests that are blocked on
unsigned authors. Every write is safe to repeat: tracking inserts resolve
unique-constraint conflicts instead of failing, and deletes tolerate rows
that are already gone.
"""

import asyncio
import uuid
from datetime import datetime, timezone
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import delete, insert
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession

from cla_bot.core.errors import DuplicateSignatureError, ParentResolutionError
from cla_bot.core.logging import get_logger
from cla_bot.db.migrate import migrate_schema
from cla_bot.db.models import Signature, UnsignedAuthor, UnsignedPullRequest
from cla_bot.schemas.signature import EvaluationInfo, User, UserSignature

logger = get_logger(__name__)


class SignatureStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    def _upsert(self, model):
        """INSERT construct of the session's dialect, for ON CONFLICT support."""
        if self.session.get_bind().dialect.name == "sqlite":
            return sqlite_insert(model)
        return pg_insert(model)

    async def insert_signature(self, signature: UserSignature) -> None:
        """
        Record a signed CLA.

        Raises:
            DuplicateSignatureError: the user already signed this CLA version,
                or the insert affected no rows.
        """
        stmt = insert(Signature).values(
            id=uuid.uuid4(),
            login_name=signature.user.login,
            email=signature.user.email,
            given_name=signature.user.name,
            cla_version=signature.cla_version,
            signed_at=signature.time_signed or datetime.now(timezone.utc),
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                raise DuplicateSignatureError(
                    f"insert error. no rows affected. user: {signature.user}"
                )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise DuplicateSignatureError(
                f"insert error. did user previously sign the cla? "
                f"user: {signature.user}, error: {e.orig}"
            ) from e

        logger.info(
            "Stored signature: %s (cla version %s)",
            signature.user.login,
            signature.cla_version,
        )

    async def has_signed(
        self, login: str, cla_version: str
    ) -> Tuple[bool, Optional[UserSignature]]:
        """
        Check whether login signed the given CLA version.

        Returns:
            (True, signature) when a signature exists, (False, None) otherwise.
        """
        result = await self.session.exec(
            select(Signature).where(
                Signature.login_name == login,
                Signature.cla_version == cla_version,
            )
        )
        found = result.first()
        if found is None:
            return False, None

        logger.debug(
            "Found signature for author: %s, signed at: %s, cla version: %s",
            found.login_name,
            found.signed_at,
            found.cla_version,
        )
        return True, found.to_user_signature()

    async def store_unsigned_authors(
        self, eval_info: EvaluationInfo, checked_at: datetime
    ) -> uuid.UUID:
        """
        Track the pull request and its authors that still need to sign.

        The parent row is inserted with ON CONFLICT DO NOTHING; when it already
        exists the existing id is looked up by (repo_name, pr_number) and its
        head sha is refreshed. Author rows that already exist are skipped,
        which is the normal path for close/reopen or synchronize events.

        Returns:
            The id of the tracked pull request, also set on eval_info.

        Raises:
            ParentResolutionError: the parent id could not be determined.
        """
        stmt = (
            self._upsert(UnsignedPullRequest)
            .values(
                id=uuid.uuid4(),
                repo_owner=eval_info.repo_owner,
                repo_name=eval_info.repo_name,
                sha=eval_info.sha,
                pr_number=eval_info.pr_number,
                app_id=eval_info.app_id,
                install_id=eval_info.install_id,
            )
            .on_conflict_do_nothing(
                index_elements=[
                    UnsignedPullRequest.repo_name,
                    UnsignedPullRequest.pr_number,
                ]
            )
            .returning(UnsignedPullRequest.id)
        )
        res = await self.session.execute(stmt)
        parent_id = res.scalar_one_or_none()

        if parent_id is None:
            parent = await self._find_parent(eval_info.repo_name, eval_info.pr_number)
            if parent is None:
                await self.session.rollback()
                raise ParentResolutionError(
                    f"insert error. could not resolve tracked pull request "
                    f"repo: {eval_info.repo_name}, pr: {eval_info.pr_number}"
                )
            parent_id = parent.id
            parent.repo_owner = eval_info.repo_owner
            parent.sha = eval_info.sha
            parent.app_id = eval_info.app_id
            parent.install_id = eval_info.install_id
            self.session.add(parent)
            logger.info("Tracked pull request already exists: %s", parent_id)
        else:
            logger.info(
                "Created tracked pull request: %s (%s)",
                parent_id,
                eval_info.display_name,
            )

        for signature in eval_info.user_signatures:
            author_stmt = (
                self._upsert(UnsignedAuthor)
                .values(
                    id=uuid.uuid4(),
                    unsigned_pr_id=parent_id,
                    login_name=signature.user.login,
                    email=signature.user.email,
                    given_name=signature.user.name,
                    cla_version=signature.cla_version,
                    checked_at=checked_at,
                )
                .on_conflict_do_nothing(
                    index_elements=[
                        UnsignedAuthor.unsigned_pr_id,
                        UnsignedAuthor.login_name,
                        UnsignedAuthor.cla_version,
                    ]
                )
            )
            await self.session.execute(author_stmt)

        await self.session.commit()

        eval_info.unsigned_pr_id = parent_id
        return parent_id

    async def get_tracked_pull_requests(
        self, user: UserSignature
    ) -> List[EvaluationInfo]:
        """Every tracked pull request this user blocks for their CLA version."""
        statement = (
            select(UnsignedPullRequest, UnsignedAuthor)
            .join(
                UnsignedAuthor,
                UnsignedAuthor.unsigned_pr_id == UnsignedPullRequest.id,
            )
            .where(
                UnsignedAuthor.login_name == user.user.login,
                UnsignedAuthor.cla_version == user.cla_version,
            )
            .order_by(UnsignedPullRequest.repo_name, UnsignedPullRequest.pr_number)
        )
        result = await self.session.exec(statement)

        evals = []
        for pr, author in result.all():
            evals.append(
                EvaluationInfo(
                    repo_owner=pr.repo_owner,
                    repo_name=pr.repo_name,
                    sha=pr.sha,
                    pr_number=pr.pr_number,
                    app_id=pr.app_id,
                    install_id=pr.install_id,
                    unsigned_pr_id=pr.id,
                    user_signatures=[
                        UserSignature(
                            user=User(
                                login=author.login_name,
                                email=author.email,
                                name=author.given_name,
                            ),
                            cla_version=author.cla_version,
                        )
                    ],
                )
            )
        return evals

    async def remove_resolved_authors(
        self, signed_users: Sequence[UserSignature], eval_info: EvaluationInfo
    ) -> None:
        """
        Stop tracking authors who have signed, then drop the tracked pull
        request once no authors remain.

        The parent is only garbage-collected when this call deleted at least
        one author row.
        """
        if not signed_users:
            return

        parent_id = eval_info.unsigned_pr_id
        if parent_id is None:
            parent = await self._find_parent(eval_info.repo_name, eval_info.pr_number)
            if parent is None:
                return
            parent_id = parent.id

        deleted = 0
        for signature in signed_users:
            res = await self.session.execute(
                delete(UnsignedAuthor).where(
                    UnsignedAuthor.unsigned_pr_id == parent_id,
                    UnsignedAuthor.login_name == signature.user.login,
                    UnsignedAuthor.cla_version == signature.cla_version,
                )
            )
            deleted += res.rowcount

        if deleted:
            # pylint: disable-next=not-callable
            count_stmt = select(func.count()).select_from(UnsignedAuthor).where(
                UnsignedAuthor.unsigned_pr_id == parent_id
            )
            remaining = (await self.session.execute(count_stmt)).scalar() or 0
            if remaining == 0:
                await self.session.execute(
                    delete(UnsignedPullRequest).where(
                        UnsignedPullRequest.id == parent_id
                    )
                )
                logger.info("Removed resolved pull request: %s", parent_id)

        await self.session.commit()
        logger.debug("Removed %d resolved authors for %s", deleted, parent_id)

    async def migrate_schema(self) -> None:
        """Apply pending migrations to the database this store is bound to."""
        url = self.session.get_bind().url.render_as_string(hide_password=False)
        await asyncio.to_thread(migrate_schema, url)

    async def _find_parent(
        self, repo_name: str, pr_number: int
    ) -> Optional[UnsignedPullRequest]:
        result = await self.session.exec(
            select(UnsignedPullRequest).where(
                UnsignedPullRequest.repo_name == repo_name,
                UnsignedPullRequest.pr_number == pr_number,
            )
        )
        return result.first()
