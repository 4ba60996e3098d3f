"""
CLA enforcement: signature store, pull request evaluator and re-evaluation.
"""

from cla_bot.services.cla.evaluator import PullRequestEvaluator
from cla_bot.services.cla.reevaluation import review_prior_pull_requests
from cla_bot.services.cla.store import SignatureStore

__all__ = [
    "PullRequestEvaluator",
    "SignatureStore",
    "review_prior_pull_requests",
]
