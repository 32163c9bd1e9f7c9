"""
Trust-state evaluation.

`evaluate` is a pure function: it looks at a profile snapshot and the
current time and returns the decision together with the field changes that
must be persisted (lifting a lapsed suspension, downgrading a lapsed Author).
It never touches the database.

`TrustGate` is the impure wrapper used on every authenticated request. It
persists those changes through a UserRepository before turning the decision
into either the profile or a TrustError. Expiry is therefore corrected
lazily, the next time the affected user makes a request; `sweep` runs the
same evaluation over every lapsed profile for deployments that want it.
"""
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Optional

from django.utils import timezone

from .exceptions import AccountBanned, AccountSuspended, SubscriptionExpired
from .models import Role
from .repositories import DjangoUserRepository

logger = logging.getLogger(__name__)

ALLOWED = "ALLOWED"
BANNED = "BANNED"
SUSPENDED = "SUSPENDED"
SUBSCRIPTION_EXPIRED = "SUBSCRIPTION_EXPIRED"

CLEAR_SUSPENSION = {"is_suspended": False, "suspended_until": None}
DOWNGRADE_TO_USER = {
    "role": Role.USER,
    "subscription_plan": None,
    "subscription_expires_at": None,
}


@dataclass(frozen=True)
class Decision:
    status: str
    suspended_until: Optional[object] = None
    remaining: Optional[timedelta] = None

    @property
    def allowed(self):
        return self.status == ALLOWED


@dataclass(frozen=True)
class Evaluation:
    decision: Decision
    changes: dict = field(default_factory=dict)


def evaluate(state, now, require_author=False):
    """
    Compute the effective trust decision for a profile snapshot.

    Checks run in order and stop at the first block: ban, active
    suspension, then (only when require_author is set) the Author
    subscription. A lapsed suspension is cleared and evaluation continues
    with the cleared state.
    """
    if state.is_banned:
        return Evaluation(Decision(BANNED))

    changes = {}
    if state.is_suspended:
        until = state.suspended_until
        if until is not None and now < until:
            return Evaluation(Decision(SUSPENDED, suspended_until=until, remaining=until - now))
        changes.update(CLEAR_SUSPENSION)

    if require_author and Role.normalize(state.role) == Role.AUTHOR:
        expires_at = state.subscription_expires_at
        if expires_at is None or now > expires_at:
            changes.update(DOWNGRADE_TO_USER)
            return Evaluation(Decision(SUBSCRIPTION_EXPIRED), changes)

    return Evaluation(Decision(ALLOWED), changes)


def apply_changes(profile, changes):
    for name, value in changes.items():
        setattr(profile, name, value)


def raise_for_decision(decision, profile):
    """Raise the TrustError matching a blocking decision."""
    if decision.status == BANNED:
        extra = {}
        if profile.suspension_reason:
            extra["reason"] = profile.suspension_reason
        raise AccountBanned(**extra)
    if decision.status == SUSPENDED:
        raise AccountSuspended(decision.suspended_until, decision.remaining)
    if decision.status == SUBSCRIPTION_EXPIRED:
        raise SubscriptionExpired()


class TrustGate:
    """Per-request trust check with lazy persistence of expiry corrections."""

    def __init__(self, repository=None, clock=timezone.now):
        self.repository = repository or DjangoUserRepository()
        self.clock = clock

    def check(self, user_id, require_author=False):
        """
        Return the user's profile if they may act, else raise.

        Corrections found by the evaluator are written before the decision
        is returned or raised.
        """
        profile = self.repository.get(user_id)
        now = self.clock()
        evaluation = evaluate(profile, now, require_author)
        if evaluation.changes:
            evaluation, profile = self._persist(user_id, now, require_author)
        raise_for_decision(evaluation.decision, profile)
        return profile

    def _persist(self, user_id, now, require_author):
        # Re-evaluate under the lock so a suspension issued since the first
        # read is not cleared. Concurrent writers on other fields are
        # last-writer-wins.
        with self.repository.locked(user_id) as profile:
            evaluation = evaluate(profile, now, require_author)
            if evaluation.changes:
                apply_changes(profile, evaluation.changes)
                self.repository.save(profile, evaluation.changes.keys())
                logger.info(
                    "Lazily corrected trust state for user %s: %s",
                    user_id,
                    ", ".join(sorted(evaluation.changes)),
                )
        return evaluation, profile

    def sweep(self):
        """
        Correct every lapsed suspension and subscription now.

        Returns the number of profiles that were changed.
        """
        now = self.clock()
        changed = 0
        for user_id in list(self.repository.iter_stale_candidates(now)):
            evaluation, _ = self._persist(user_id, now, require_author=True)
            if evaluation.changes:
                changed += 1
        return changed
