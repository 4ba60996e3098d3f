"""
Re-evaluation of tracked pull requests after a user signs the CLA.
"""

from typing import List

from cla_bot.core.logging import get_logger
from cla_bot.schemas.signature import EvaluationInfo, UserSignature
from cla_bot.services.cla.evaluator import PullRequestEvaluator
from cla_bot.services.cla.store import SignatureStore

logger = get_logger(__name__)


async def review_prior_pull_requests(
    evaluator: PullRequestEvaluator,
    store: SignatureStore,
    user: UserSignature,
) -> List[EvaluationInfo]:
    """
    Re-run the evaluator on every pull request the user was blocking.

    Pull requests are evaluated one at a time; the first error stops the run
    and propagates, leaving the remaining pull requests for the next trigger.

    Returns:
        The pull requests that were re-evaluated.
    """
    evals = await store.get_tracked_pull_requests(user)
    logger.debug(
        "Reviewing %d tracked pull requests for %s", len(evals), user.user.login
    )

    for eval_info in evals:
        await evaluator.evaluate(eval_info, user.cla_version)

    return evals
