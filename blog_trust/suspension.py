"""
Strike escalation.

Each strike suspends the account for a number of hours. The strike that
brings the counter to the ban threshold bans the account instead, and a
ban is terminal: further strikes are refused.

    Active -> Suspended -> Banned
       ^          |
       +----------+  (lapse or explicit unsuspend)
"""
import logging
from dataclasses import dataclass
from datetime import timedelta

from django.utils import timezone

from .conf import trust_settings
from .exceptions import AlreadyBanned, ValidationError
from .models import Strike, TrustProfile
from .repositories import DjangoUserRepository

logger = logging.getLogger(__name__)


@dataclass
class StrikeResult:
    profile: TrustProfile
    message: str


class SuspensionEngine:
    """Apply strikes and lift suspensions on behalf of administrators."""

    def __init__(self, repository=None, clock=timezone.now):
        self.repository = repository or DjangoUserRepository()
        self.clock = clock

    def apply_strike(
        self,
        user_id,
        manual_ban=False,
        duration_hours=None,
        reason=None,
        actioned_by=None,
    ):
        """
        Record a violation against a user.

        A manual ban bans without counting a strike. Otherwise the strike
        counter is incremented; reaching the threshold bans the account,
        anything below suspends it for duration_hours.

        The read-increment-write runs under the repository lock, so
        concurrent strikes are never lost. Not idempotent.
        """
        if duration_hours is None:
            duration_hours = trust_settings.DEFAULT_SUSPENSION_HOURS
        duration_hours = _coerce_hours(duration_hours)
        reason = reason or trust_settings.DEFAULT_STRIKE_REASON
        threshold = trust_settings.STRIKE_BAN_THRESHOLD

        with self.repository.locked(user_id) as profile:
            if profile.is_banned:
                raise AlreadyBanned()

            if manual_ban:
                action = Strike.Action.BANNED
                self._ban(profile)
                message = "User has been banned."
            else:
                new_count = profile.strike_count + 1
                profile.strike_count = new_count
                if new_count >= threshold:
                    action = Strike.Action.AUTO_BANNED
                    self._ban(profile)
                    message = (
                        f"User has been automatically banned after reaching {threshold} strikes."
                    )
                else:
                    action = Strike.Action.SUSPENDED
                    profile.is_suspended = True
                    profile.suspended_until = self.clock() + timedelta(hours=duration_hours)
                    message = f"User suspended for {_format_hours(duration_hours)} hour(s)."

            profile.suspension_reason = reason[:255]
            self.repository.save(
                profile,
                ["is_banned", "is_suspended", "suspended_until", "strike_count", "suspension_reason"],
            )
            self.repository.record_action(profile, action, reason=reason, actioned_by=actioned_by)

        logger.info(
            "Strike applied to user %s: %s (strikes=%s, reason=%r)",
            user_id,
            action,
            profile.strike_count,
            reason,
        )
        return StrikeResult(profile=profile, message=message)

    def unsuspend(self, user_id, actioned_by=None):
        """Lift a suspension without touching strikes or a ban."""
        with self.repository.locked(user_id) as profile:
            profile.is_suspended = False
            profile.suspended_until = None
            self.repository.save(profile, ["is_suspended", "suspended_until"])
            self.repository.record_action(
                profile,
                Strike.Action.UNSUSPENDED,
                actioned_by=actioned_by,
            )

        logger.info("Suspension lifted for user %s", user_id)
        return StrikeResult(profile=profile, message="User unsuspended")

    @staticmethod
    def _ban(profile):
        profile.is_banned = True
        profile.is_suspended = False
        profile.suspended_until = None


def _coerce_hours(value):
    if isinstance(value, bool):
        raise ValidationError("durationHours must be a positive number")
    try:
        hours = float(value)
    except (TypeError, ValueError):
        raise ValidationError("durationHours must be a positive number")
    if hours <= 0 or hours != hours or hours == float("inf"):
        raise ValidationError("durationHours must be a positive number")
    if hours > trust_settings.MAX_SUSPENSION_HOURS:
        raise ValidationError(
            f"durationHours must not exceed {trust_settings.MAX_SUSPENSION_HOURS}"
        )
    return hours


def _format_hours(hours):
    return int(hours) if float(hours).is_integer() else hours
