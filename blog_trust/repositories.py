"""
User repository used by the trust engine.

Services depend on the UserRepository interface rather than on the ORM
directly, so the evaluator and strike engine can be exercised against an
in-memory implementation.
"""
import logging
from abc import ABC, abstractmethod
from contextlib import contextmanager

from django.contrib.auth import get_user_model
from django.db import DatabaseError, transaction
from django.db.models import Q

from .exceptions import PersistenceError, UserNotFound
from .models import Role, Strike, TrustProfile

logger = logging.getLogger(__name__)


class UserRepository(ABC):
    """Load and update trust profiles by user id."""

    @abstractmethod
    def get(self, user_id):
        """Return the profile for user_id or raise UserNotFound."""

    @abstractmethod
    def locked(self, user_id):
        """
        Context manager yielding the profile with exclusive access.

        Reads and writes made inside the block are atomic with respect to
        other locked() blocks on the same user.
        """

    @abstractmethod
    def save(self, profile, fields):
        """Persist the given fields of profile."""

    @abstractmethod
    def record_action(self, profile, action, reason="", actioned_by=None):
        """Append a moderation audit entry."""

    @abstractmethod
    def iter_stale_candidates(self, now):
        """Yield user ids whose suspension or subscription may have lapsed."""


class DjangoUserRepository(UserRepository):
    """UserRepository backed by the Django ORM."""

    def get(self, user_id):
        try:
            profile = (
                TrustProfile.objects.select_related("user").filter(user_id=user_id).first()
            )
            if profile is not None:
                return profile

            User = get_user_model()
            user = User.objects.filter(pk=user_id).first()
            if user is None:
                raise UserNotFound()
            profile, _ = TrustProfile.objects.get_or_create(user=user)
            return profile
        except (TypeError, ValueError):
            raise UserNotFound()
        except DatabaseError as exc:
            logger.exception("Failed to load trust profile for user %s", user_id)
            raise PersistenceError() from exc

    @contextmanager
    def locked(self, user_id):
        # Make sure the row exists before taking the lock.
        self.get(user_id)
        with transaction.atomic():
            profile = (
                TrustProfile.objects.select_for_update()
                .select_related("user")
                .get(user_id=user_id)
            )
            yield profile

    def save(self, profile, fields):
        update_fields = list(fields)
        if "updated_at" not in update_fields:
            update_fields.append("updated_at")
        profile.save(update_fields=update_fields)

    def record_action(self, profile, action, reason="", actioned_by=None):
        return Strike.objects.create(
            profile=profile,
            action=action,
            reason=reason,
            strike_number=profile.strike_count,
            suspended_until=profile.suspended_until,
            actioned_by=actioned_by,
        )

    def iter_stale_candidates(self, now):
        lapsed_suspension = Q(is_suspended=True) & (
            Q(suspended_until__isnull=True) | Q(suspended_until__lte=now)
        )
        lapsed_subscription = Q(role=Role.AUTHOR) & (
            Q(subscription_expires_at__isnull=True) | Q(subscription_expires_at__lt=now)
        )
        queryset = (
            TrustProfile.objects.filter(is_banned=False)
            .filter(lapsed_suspension | lapsed_subscription)
            .values_list("user_id", flat=True)
            .order_by("user_id")
        )
        yield from queryset.iterator()
