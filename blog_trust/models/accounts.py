"""
Trust profile, strike audit and payment models for django-blog-trust.
"""
from django.conf import settings
from django.db import models


class Role(models.TextChoices):
    USER = "USER", "User"
    AUTHOR = "AUTHOR", "Author"
    ADMIN = "ADMIN", "Admin"
    CREATOR = "CREATOR", "Creator"

    @classmethod
    def normalize(cls, value):
        """
        Map a role string of any casing to a Role member.

        Unknown or empty values resolve to USER.
        """
        if isinstance(value, cls):
            return value
        cleaned = str(value or "").strip().upper()
        try:
            return cls(cleaned)
        except ValueError:
            return cls.USER


class SubscriptionPlan(models.TextChoices):
    WEEKLY = "WEEKLY", "Weekly"
    MONTHLY = "MONTHLY", "Monthly"
    YEARLY = "YEARLY", "Yearly"


STAFF_ROLES = (Role.ADMIN, Role.CREATOR)


class TrustProfile(models.Model):
    """
    Trust state attached to an account.

    Holds everything that decides whether a user may act:
    - ban and suspension flags with the suspension end time
    - the strike counter driving escalation to a ban
    - the Author subscription plan and its expiry
    """

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="trust_profile",
    )
    role = models.CharField(max_length=20, choices=Role.choices, default=Role.USER)

    # Moderation
    is_banned = models.BooleanField(default=False)
    is_suspended = models.BooleanField(default=False)
    suspended_until = models.DateTimeField(null=True, blank=True)
    strike_count = models.PositiveIntegerField(default=0)
    suspension_reason = models.CharField(max_length=255, blank=True)

    # Subscription
    subscription_plan = models.CharField(
        max_length=10,
        choices=SubscriptionPlan.choices,
        null=True,
        blank=True,
    )
    subscription_expires_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        indexes = [
            models.Index(fields=["is_suspended", "suspended_until"]),
            models.Index(fields=["role", "subscription_expires_at"]),
        ]

    def __str__(self):
        return f"{self.user} ({self.role})"

    @property
    def is_staff_role(self):
        """ADMIN and CREATOR bypass subscription and ownership checks."""
        return self.role in STAFF_ROLES

    def as_moderation_dict(self):
        """Shape returned by the suspend/ban endpoints."""
        return {
            "id": self.user_id,
            "username": self.user.get_username(),
            "strikeCount": self.strike_count,
            "isSuspended": self.is_suspended,
            "isBanned": self.is_banned,
            "suspendedUntil": _isoformat(self.suspended_until),
        }

    def as_subscription_dict(self):
        """Shape returned by the subscription endpoints."""
        return {
            "id": self.user_id,
            "username": self.user.get_username(),
            "role": self.role,
            "subscriptionPlan": self.subscription_plan,
            "subscriptionExpiresAt": _isoformat(self.subscription_expires_at),
        }


class Strike(models.Model):
    """
    Audit trail of moderation actions on a trust profile.

    Append-only: rows are never updated or deleted by the engine.
    """

    class Action(models.TextChoices):
        SUSPENDED = "SUSPENDED", "Suspended"
        BANNED = "BANNED", "Banned"
        AUTO_BANNED = "AUTO_BANNED", "Auto-banned"
        UNSUSPENDED = "UNSUSPENDED", "Unsuspended"

    profile = models.ForeignKey(
        TrustProfile,
        on_delete=models.CASCADE,
        related_name="strikes",
    )
    action = models.CharField(max_length=20, choices=Action.choices)
    reason = models.CharField(max_length=255, blank=True)
    strike_number = models.PositiveIntegerField(default=0)
    suspended_until = models.DateTimeField(null=True, blank=True)
    actioned_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="issued_strikes",
    )
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.action} #{self.strike_number} for {self.profile.user}"


class Payment(models.Model):
    """
    Gateway-confirmed subscription payment.

    tx_ref is unique so a verified transaction can grant a plan only once.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="subscription_payments",
    )
    plan = models.CharField(max_length=10, choices=SubscriptionPlan.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, blank=True)
    status = models.CharField(max_length=20, default="completed")
    tx_ref = models.CharField(max_length=100, unique=True)
    transaction_id = models.CharField(max_length=100, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.plan} payment {self.tx_ref} by {self.user}"


def _isoformat(value):
    return value.isoformat() if value else None
