"""Django app configuration for blog_trust."""
from django.apps import AppConfig


class BlogTrustConfig(AppConfig):
    """Configuration for the blog trust app."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "blog_trust"
    verbose_name = "Blog Trust"
