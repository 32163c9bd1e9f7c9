"""
Helpers shared by test modules.
"""
from django.contrib.auth import get_user_model

from blog_trust.models import Role, TrustProfile
from blog_trust.tokens import issue_token


def make_user(username, role=Role.USER, **trust):
    """Create an auth user with a trust profile."""
    user = get_user_model().objects.create_user(
        username=username,
        email=f"{username}@example.com",
        password="testpass123",
    )
    TrustProfile.objects.create(user=user, role=role, **trust)
    return user


def bearer(user, role=None):
    """Authorization header for user."""
    role = role or user.trust_profile.role
    return {"HTTP_AUTHORIZATION": f"Bearer {issue_token(user.pk, role)}"}
