"""
Models for django-blog-trust.

All models are importable from blog_trust.models:

    from blog_trust.models import TrustProfile, Post, BlogLike
"""
from .accounts import Role, SubscriptionPlan, TrustProfile, Strike, Payment, STAFF_ROLES
from .posts import Post
from .comments import Comment, BlogLike

__all__ = [
    # Accounts
    "Role",
    "SubscriptionPlan",
    "STAFF_ROLES",
    "TrustProfile",
    "Strike",
    "Payment",
    # Posts
    "Post",
    # Comments
    "Comment",
    "BlogLike",
]
