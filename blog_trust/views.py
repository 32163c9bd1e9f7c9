"""
JSON views for django-blog-trust.
"""
import json
import logging

from django.contrib.auth import authenticate
from django.http import JsonResponse
from django.utils.decorators import method_decorator
from django.views import View
from django.views.decorators.csrf import csrf_exempt

from .conf import get_payment_gateway, trust_settings
from .decorators import admin_required, author_required, login_required, owner_or_staff_required
from .engagement import EngagementPromoter
from .exceptions import ResourceNotFound, UserNotFound, ValidationError
from .models import Comment, Post
from .subscriptions import SubscriptionLifecycle
from .suspension import SuspensionEngine
from .tokens import issue_token

logger = logging.getLogger(__name__)


def read_json(request):
    """Parse the request body as a JSON object."""
    if not request.body:
        return {}
    try:
        data = json.loads(request.body.decode())
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise ValidationError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValidationError("JSON body must be an object")
    return data


def account_dict(profile):
    data = profile.as_subscription_dict()
    data.update(profile.as_moderation_dict())
    return data


@method_decorator(csrf_exempt, name="dispatch")
class TokenObtainView(View):
    """Exchange credentials for a bearer token."""

    def post(self, request):
        body = read_json(request)
        username = (body.get("username") or "").strip()
        password = body.get("password") or ""
        if not username or not password:
            raise ValidationError("Username and password are required")

        user = authenticate(request, username=username, password=password)
        if user is None:
            raise ValidationError("Invalid credentials")

        # Banned or still-suspended accounts get no token.
        profile = request.trust_gate.check(user.pk)
        token = issue_token(user.pk, profile.role)
        return JsonResponse({
            "message": "Login successful",
            "token": token,
            "user": account_dict(profile),
        })


@method_decorator(login_required, name="dispatch")
class TrustStatusView(View):
    """Trust state of the caller."""

    def get(self, request):
        return JsonResponse({"user": account_dict(request.trust_profile)})


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(admin_required, name="dispatch")
class SuspendUserView(View):
    """Apply a strike (suspension or ban) to a user."""

    def patch(self, request, pk):
        body = read_json(request)
        manual_ban = body.get("manualBan", False)
        if not isinstance(manual_ban, bool):
            raise ValidationError("manualBan must be a boolean")

        try:
            result = SuspensionEngine().apply_strike(
                pk,
                manual_ban=manual_ban,
                duration_hours=body.get("durationHours", trust_settings.DEFAULT_SUSPENSION_HOURS),
                reason=(body.get("reason") or "").strip() or None,
                actioned_by=request.trust_profile.user,
            )
        except UserNotFound:
            raise ResourceNotFound("User not found")

        return JsonResponse({
            "message": result.message,
            "user": result.profile.as_moderation_dict(),
        })


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(admin_required, name="dispatch")
class UnsuspendUserView(View):
    """Lift a user's suspension."""

    def post(self, request, pk):
        try:
            result = SuspensionEngine().unsuspend(pk, actioned_by=request.trust_profile.user)
        except UserNotFound:
            raise ResourceNotFound("User not found")

        return JsonResponse({
            "message": result.message,
            "user": result.profile.as_moderation_dict(),
        })


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required, name="dispatch")
class SubscriptionGrantView(View):
    """Self-service upgrade to an Author plan."""

    def post(self, request):
        body = read_json(request)
        profile = SubscriptionLifecycle().grant_author_plan(
            request.trust_profile.user_id,
            body.get("plan"),
        )
        return JsonResponse({
            "message": f"Upgraded to {profile.subscription_plan} plan.",
            "user": profile.as_subscription_dict(),
        })


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required, name="dispatch")
class PaymentInitiateView(View):
    """Open a gateway checkout for a paid plan."""

    def post(self, request):
        body = read_json(request)
        gateway = get_payment_gateway()
        if gateway is None:
            logger.error("Payment initiation requested but no gateway is configured")
            return JsonResponse({"message": "Payment gateway unavailable"}, status=503)

        checkout = SubscriptionLifecycle().initiate_payment(
            request.trust_profile.user_id,
            body.get("plan"),
            gateway,
        )
        return JsonResponse({
            "paymentLink": checkout.payment_link,
            "tx_ref": checkout.tx_ref,
            "plan": checkout.plan,
            "amount": str(checkout.amount),
            "currency": checkout.currency,
        })


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required, name="dispatch")
class PaymentVerifyView(View):
    """Verify a gateway transaction and grant the paid plan."""

    def post(self, request):
        body = read_json(request)
        transaction_id = body.get("transaction_id")
        tx_ref = body.get("tx_ref")
        if not transaction_id and not tx_ref:
            raise ValidationError("transaction_id or tx_ref is required")

        gateway = get_payment_gateway()
        if gateway is None:
            logger.error("Payment verification requested but no gateway is configured")
            return JsonResponse({"message": "Payment gateway unavailable"}, status=503)

        payment = gateway.verify(transaction_id=transaction_id, tx_ref=tx_ref)
        profile = SubscriptionLifecycle().confirm_payment(request.trust_profile.user_id, payment)
        return JsonResponse({
            "success": True,
            "message": "Subscription successful! You are now an Author.",
            "user": profile.as_subscription_dict(),
            "tx_ref": payment.tx_ref,
            "transaction_id": payment.transaction_id,
        })


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(author_required, name="dispatch")
class PostCreateView(View):
    """Create a post. Requires a live Author subscription."""

    def post(self, request):
        body = read_json(request)
        title = (body.get("title") or "").strip()
        if not title:
            raise ValidationError("Title is required")

        post = Post.objects.create(
            title=title,
            body=body.get("body") or "",
            author_id=request.trust_profile.user_id,
        )
        return JsonResponse({
            "id": post.pk,
            "title": post.title,
            "slug": post.slug,
            "latest": post.latest,
            "trending": post.trending,
        }, status=201)


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(owner_or_staff_required(Post, not_found="Blog not found"), name="dispatch")
class PostDeleteView(View):
    """Soft delete a post. Owner, ADMIN or CREATOR only."""

    def delete(self, request, pk):
        request.trust_target.soft_delete()
        return JsonResponse({"message": "Blog deleted"})


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(owner_or_staff_required(Comment, not_found="Comment not found"), name="dispatch")
class CommentDeleteView(View):
    """Soft delete a comment. Owner, ADMIN or CREATOR only."""

    def delete(self, request, pk):
        request.trust_target.soft_delete()
        return JsonResponse({"message": "Comment deleted"})


@method_decorator(csrf_exempt, name="dispatch")
@method_decorator(login_required, name="dispatch")
class LikeToggleView(View):
    """Toggle the caller's like on a post."""

    def post(self, request, pk):
        result = EngagementPromoter().toggle_like(pk, request.trust_profile.user_id)
        return JsonResponse({
            "message": "Like toggled successfully",
            "liked": result.liked,
            "count": result.count,
            "trending": result.trending,
        })


@method_decorator(login_required, name="dispatch")
class LikeStatusView(View):
    """Like count of a post and whether the caller likes it."""

    def get(self, request, pk):
        count, user_liked = EngagementPromoter().like_status(pk, request.trust_profile.user_id)
        return JsonResponse({"count": count, "userLiked": user_liked})
