"""
django-blog-trust - Account trust-state and engagement engine for Django blogs.

Features:
- Bearer-token authentication with a per-request trust gate
- Strike escalation: suspensions that turn into a permanent ban
- Lazily expiring suspensions and Author subscriptions
- Author subscription plans granted directly or after payment verification
- Like toggling with one-way promotion of posts to trending
"""

__version__ = "0.1.0"
__author__ = "Nestor Wheelock"
