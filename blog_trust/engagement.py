"""
Likes and trending promotion.
"""
import logging
from dataclasses import dataclass

from .conf import trust_settings
from .exceptions import ResourceNotFound
from .models import BlogLike, Post

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LikeResult:
    liked: bool
    count: int
    trending: bool


class EngagementPromoter:
    """Toggle likes and promote posts from latest to trending."""

    def toggle_like(self, post_id, user_id):
        """
        Like the post, or remove an existing like.

        After every toggle the like count is recomputed. A post reaching the
        trending threshold is promoted once; unlikes never demote it.
        """
        post = self._get_post(post_id)
        liked = BlogLike.toggle(post.pk, user_id)
        count = post.like_count

        if count >= trust_settings.TRENDING_LIKE_THRESHOLD and not post.trending:
            if post.promote_to_trending():
                logger.info("Post %s promoted to trending with %s likes", post.pk, count)
            else:
                post.trending = True

        return LikeResult(liked=liked, count=count, trending=post.trending)

    def like_status(self, post_id, user_id=None):
        """Return (like count, whether user_id currently likes the post)."""
        post = self._get_post(post_id)
        user_liked = False
        if user_id is not None:
            user_liked = BlogLike.objects.filter(post=post, user_id=user_id, liked=True).exists()
        return post.like_count, user_liked

    @staticmethod
    def _get_post(post_id):
        try:
            post = Post.objects.filter(pk=post_id, is_deleted=False).first()
        except (TypeError, ValueError):
            post = None
        if post is None:
            raise ResourceNotFound("Blog not found")
        return post
