"""
Comment and BlogLike models for django-blog-trust.
"""
from django.conf import settings
from django.db import IntegrityError, models, transaction
from django.utils import timezone


class Comment(models.Model):
    """
    Comment on a post.

    Kept minimal: the engine only needs its author for ownership checks.
    """

    post = models.ForeignKey(
        "blog_trust.Post",
        on_delete=models.CASCADE,
        related_name="comments",
    )
    author = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="trust_comments",
    )
    body = models.TextField()
    is_deleted = models.BooleanField(default=False)
    deleted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["created_at"]

    def __str__(self):
        return f"Comment by {self.author} on {self.post}"

    def soft_delete(self):
        """Soft delete the comment."""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.save(update_fields=["is_deleted", "deleted_at", "updated_at"])


class BlogLike(models.Model):
    """
    A reader's like on a post.

    One row per (post, user). A row with liked=True is the only thing
    that counts towards a post's likes.
    """

    post = models.ForeignKey(
        "blog_trust.Post",
        on_delete=models.CASCADE,
        related_name="likes",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="blog_likes",
    )
    liked = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.UniqueConstraint(fields=["post", "user"], name="unique_like_per_user"),
        ]

    def __str__(self):
        return f"{self.user} likes {self.post}"

    @classmethod
    def toggle(cls, post_id, user_id):
        """
        Toggle a user's like on a post.

        If the user already likes the post, the row is removed.
        Otherwise a liked row is created. A concurrent request that created
        the row first wins the race and this call resolves as liked.

        Returns True if the post is now liked by the user.
        """
        existing = cls.objects.filter(post_id=post_id, user_id=user_id).first()
        if existing:
            existing.delete()
            return False

        try:
            with transaction.atomic():
                cls.objects.create(post_id=post_id, user_id=user_id, liked=True)
        except IntegrityError:
            # Lost the race against an identical like; read it back instead.
            return cls.objects.filter(post_id=post_id, user_id=user_id, liked=True).exists()
        return True
