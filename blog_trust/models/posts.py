"""
Post model for django-blog-trust.

Only the fields the engagement engine and ownership checks rely on live
here; content rendering belongs to the host project.
"""
from django.conf import settings
from django.db import models
from django.utils import timezone
from django.utils.text import slugify


class Post(models.Model):
    """
    Blog post.

    New posts are listed as latest. Once enough readers like a post it is
    promoted to trending, and that promotion is never reverted.
    """

    title = models.CharField(max_length=255)
    slug = models.SlugField(max_length=255, blank=True, db_index=True)
    body = models.TextField(blank=True)

    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="trust_posts",
    )

    # Feed placement
    latest = models.BooleanField(default=True)
    trending = models.BooleanField(default=False, db_index=True)

    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["trending", "-created_at"]),
        ]

    def __str__(self):
        return self.title

    def save(self, *args, **kwargs):
        if not self.slug and self.title:
            self.slug = slugify(self.title)[:255]
        super().save(*args, **kwargs)

    @property
    def like_count(self):
        """Number of readers currently liking this post."""
        return self.likes.filter(liked=True).count()

    def promote_to_trending(self):
        """
        Mark the post trending and drop it from latest.

        Uses a conditional update so concurrent promoters write once.
        Returns True if this call performed the promotion.
        """
        updated = Post.objects.filter(pk=self.pk, trending=False).update(
            trending=True,
            latest=False,
            updated_at=timezone.now(),
        )
        if updated:
            self.trending = True
            self.latest = False
        return bool(updated)

    def soft_delete(self):
        """Soft delete the post."""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])
