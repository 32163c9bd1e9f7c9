"""
Configuration settings for django-blog-trust.

Override these in your Django settings.py:

    BLOG_TRUST = {
        'JWT_SECRET': 'change-me',
        'TOKEN_TTL_HOURS': 5,
        'STRIKE_BAN_THRESHOLD': 5,
        ...
    }

The payment gateway used by the verification endpoint is configured by
dotted path:

    BLOG_TRUST = {
        'PAYMENT_GATEWAY': 'myproject.payments.FlutterwaveGateway',
    }
"""
from django.conf import settings
from django.utils.module_loading import import_string

DEFAULTS = {
    # Bearer tokens
    "JWT_SECRET": None,  # falls back to settings.SECRET_KEY
    "JWT_ALGORITHM": "HS256",
    "TOKEN_TTL_HOURS": 5,

    # Strikes and suspensions
    "STRIKE_BAN_THRESHOLD": 5,
    "DEFAULT_SUSPENSION_HOURS": 1,
    "MAX_SUSPENSION_HOURS": 24 * 365 * 10,
    "DEFAULT_STRIKE_REASON": "Policy Violation",

    # Engagement
    "TRENDING_LIKE_THRESHOLD": 3,

    # Subscriptions
    "PLAN_PRICES": {
        "WEEKLY": 5000,
        "MONTHLY": 15000,
        "YEARLY": 150000,
    },
    "PLAN_CURRENCY": "NGN",
    "PAYMENT_GATEWAY": None,
}


class BlogTrustSettings:
    """
    Lazy settings object that reads from Django settings.

    Access via: from blog_trust.conf import trust_settings
    """

    def __getattr__(self, name):
        if name not in DEFAULTS:
            raise AttributeError(f"Invalid blog_trust setting: {name}")

        user_settings = getattr(settings, "BLOG_TRUST", {})
        return user_settings.get(name, DEFAULTS[name])

    @property
    def JWT_SECRET(self):
        """Return the signing secret, defaulting to the project SECRET_KEY."""
        user_settings = getattr(settings, "BLOG_TRUST", {})
        return user_settings.get("JWT_SECRET") or settings.SECRET_KEY


trust_settings = BlogTrustSettings()


def get_payment_gateway():
    """
    Instantiate the configured payment gateway.

    Returns None when no gateway is configured.
    """
    path = trust_settings.PAYMENT_GATEWAY
    if not path:
        return None
    return import_string(path)()
