"""
Author subscription lifecycle.

Granting a plan makes the user an Author until now + the plan duration.
A new grant replaces the current expiry rather than extending it. Plans are
never revoked here: a lapsed plan is downgraded by the trust gate the next
time the Author uses an author-only action.
"""
import calendar
import logging
import uuid
from dataclasses import dataclass
from datetime import timedelta
from decimal import Decimal

from django.db import IntegrityError, transaction
from django.utils import timezone

from .conf import trust_settings
from .exceptions import DuplicatePayment, PaymentNotSuccessful, ValidationError
from .models import Payment, Role, STAFF_ROLES, SubscriptionPlan
from .repositories import DjangoUserRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedPayment:
    """A transaction as reported back by the payment gateway."""

    plan: str
    amount: Decimal
    tx_ref: str
    transaction_id: str = ""
    currency: str = ""
    status: str = "successful"

    @property
    def successful(self):
        return self.status == "successful"


@dataclass(frozen=True)
class PaymentInitiation:
    """A checkout opened with the payment gateway."""

    plan: str
    amount: Decimal
    currency: str
    tx_ref: str
    payment_link: str


class PaymentGateway:
    """
    Interface of the external payment provider.

    Implementations open a checkout with `initiate`, returning the link the
    payer is sent to, and report a finished transaction with `verify`. They
    are configured with BLOG_TRUST['PAYMENT_GATEWAY'].
    """

    def initiate(self, plan, amount, currency, tx_ref, user):
        raise NotImplementedError

    def verify(self, transaction_id=None, tx_ref=None):
        raise NotImplementedError


def normalize_plan(plan):
    """Return the SubscriptionPlan for a plan name or raise ValidationError."""
    try:
        return SubscriptionPlan(str(plan or "").strip().upper())
    except ValueError:
        raise ValidationError("Invalid subscription plan")


def add_months(moment, months):
    """Add calendar months, clamping the day to the target month's length."""
    month_index = moment.month - 1 + months
    year = moment.year + month_index // 12
    month = month_index % 12 + 1
    day = min(moment.day, calendar.monthrange(year, month)[1])
    return moment.replace(year=year, month=month, day=day)


def plan_expiry(plan, now):
    """Expiry of a plan bought at `now`."""
    plan = normalize_plan(plan)
    if plan == SubscriptionPlan.WEEKLY:
        return now + timedelta(days=7)
    if plan == SubscriptionPlan.MONTHLY:
        return add_months(now, 1)
    return add_months(now, 12)


def plan_price(plan):
    """Price of a plan in the configured currency."""
    plan = normalize_plan(plan)
    return Decimal(str(trust_settings.PLAN_PRICES[plan.value]))


class SubscriptionLifecycle:
    """Grant Author plans directly or after a verified payment."""

    def __init__(self, repository=None, clock=timezone.now):
        self.repository = repository or DjangoUserRepository()
        self.clock = clock

    def grant_author_plan(self, user_id, plan, now=None):
        """
        Make the user an Author on `plan` until now + the plan duration.

        Overwrites any current plan and expiry. ADMIN and CREATOR keep their
        role and only receive the plan fields.
        """
        plan = normalize_plan(plan)
        now = now or self.clock()
        expires_at = plan_expiry(plan, now)

        with self.repository.locked(user_id) as profile:
            if profile.role not in STAFF_ROLES:
                profile.role = Role.AUTHOR
            profile.subscription_plan = plan
            profile.subscription_expires_at = expires_at
            self.repository.save(profile, ["role", "subscription_plan", "subscription_expires_at"])

        logger.info("Granted %s plan to user %s until %s", plan, user_id, expires_at.isoformat())
        return profile

    def initiate_payment(self, user_id, plan, gateway):
        """
        Open a gateway checkout for `plan` at its configured price.

        Nothing is granted here. The returned tx_ref is what the payer's
        verification later presents to confirm_payment.
        """
        plan = normalize_plan(plan)
        profile = self.repository.get(user_id)
        amount = plan_price(plan)
        currency = trust_settings.PLAN_CURRENCY
        tx_ref = str(uuid.uuid4())

        link = gateway.initiate(
            plan=plan.value,
            amount=amount,
            currency=currency,
            tx_ref=tx_ref,
            user=profile.user,
        )
        if not link:
            logger.warning("Gateway returned no payment link for %s (user %s)", tx_ref, user_id)
            raise PaymentNotSuccessful("Payment initiation failed")

        logger.info("Initiated %s payment %s for user %s", plan, tx_ref, user_id)
        return PaymentInitiation(
            plan=plan.value,
            amount=amount,
            currency=currency,
            tx_ref=tx_ref,
            payment_link=link,
        )

    def confirm_payment(self, user_id, payment):
        """
        Apply a gateway-verified payment.

        The plan grant and the payment record are written in one
        transaction; a transaction reference can only be applied once.
        """
        if not payment.successful:
            raise PaymentNotSuccessful()
        plan = normalize_plan(payment.plan)
        if not payment.tx_ref:
            raise ValidationError("Payment is missing its transaction reference")

        if Payment.objects.filter(tx_ref=payment.tx_ref).exists():
            raise DuplicatePayment()

        try:
            with transaction.atomic():
                profile = self.grant_author_plan(user_id, plan)
                Payment.objects.create(
                    user_id=user_id,
                    plan=plan,
                    amount=payment.amount,
                    currency=payment.currency or trust_settings.PLAN_CURRENCY,
                    status="completed",
                    tx_ref=payment.tx_ref,
                    transaction_id=str(payment.transaction_id or ""),
                )
        except IntegrityError:
            raise DuplicatePayment()

        logger.info("Recorded %s payment %s for user %s", plan, payment.tx_ref, user_id)
        return profile
