"""
Tests for the JSON endpoints behind TrustStateMiddleware.
"""
import json
from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from blog_trust.models import Comment, Payment, Post, Role, SubscriptionPlan, TrustProfile
from blog_trust.tokens import issue_token
from tests.gateways import FakeGateway
from tests.helpers import bearer, make_user


def patch_json(client, url, data, **headers):
    return client.patch(url, data=json.dumps(data), content_type="application/json", **headers)


def post_json(client, url, data=None, **headers):
    return client.post(url, data=json.dumps(data or {}), content_type="application/json", **headers)


class TestAuthentication:
    """401 paths are resolved before any trust check."""

    def test_missing_token(self, client, post):
        response = client.post(reverse("blog_trust:like_toggle", args=[post.pk]))
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized. Token missing"

    def test_invalid_token(self, client, post):
        response = client.post(
            reverse("blog_trust:like_toggle", args=[post.pk]),
            HTTP_AUTHORIZATION="Bearer nonsense",
        )
        assert response.status_code == 401
        assert response.json()["status"] == "TOKEN_INVALID"

    def test_expired_token(self, client, user, post):
        token = issue_token(user.pk, Role.USER, ttl_hours=-1)
        response = client.post(
            reverse("blog_trust:like_toggle", args=[post.pk]),
            HTTP_AUTHORIZATION=f"Bearer {token}",
        )
        assert response.status_code == 401
        assert response.json()["status"] == "TOKEN_EXPIRED"

    def test_unknown_user(self, client, post):
        token = issue_token(987654, Role.USER)
        response = client.post(
            reverse("blog_trust:like_toggle", args=[post.pk]),
            HTTP_AUTHORIZATION=f"Bearer {token}",
        )
        assert response.status_code == 401
        assert response.json()["message"] == "Unauthorized. User not found."

    def test_login_issues_token(self, client, user):
        response = post_json(
            client,
            reverse("blog_trust:token_obtain"),
            {"username": "testuser", "password": "testpass123"},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["role"] == "USER"

        status = client.get(
            reverse("blog_trust:trust_status"),
            HTTP_AUTHORIZATION=f"Bearer {body['token']}",
        )
        assert status.status_code == 200
        assert status.json()["user"]["id"] == user.pk

    def test_login_wrong_password(self, client, user):
        response = post_json(
            client,
            reverse("blog_trust:token_obtain"),
            {"username": "testuser", "password": "wrong"},
        )
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid credentials"

    def test_banned_user_cannot_log_in(self, client, db):
        make_user("exiled", is_banned=True)
        response = post_json(
            client,
            reverse("blog_trust:token_obtain"),
            {"username": "exiled", "password": "testpass123"},
        )
        assert response.status_code == 403
        assert response.json()["status"] == "BANNED"


class TestTrustGate:
    """Ban, suspension and subscription checks on authenticated requests."""

    def test_banned_user_blocked(self, client, db, post):
        user = make_user("exiled", is_banned=True, suspension_reason="Spam")
        response = client.post(reverse("blog_trust:like_toggle", args=[post.pk]), **bearer(user))

        assert response.status_code == 403
        assert response.json() == {
            "message": "Your account has been permanently banned.",
            "status": "BANNED",
            "reason": "Spam",
        }

    def test_suspended_user_gets_countdown(self, client, db, post):
        user = make_user(
            "benched",
            is_suspended=True,
            suspended_until=timezone.now() + timedelta(hours=5, minutes=1),
        )
        response = client.post(reverse("blog_trust:like_toggle", args=[post.pk]), **bearer(user))

        body = response.json()
        assert response.status_code == 403
        assert body["status"] == "SUSPENDED"
        assert body["remainingHours"] == 5
        assert body["remainingSeconds"] > 5 * 3600
        assert "suspendedUntil" in body

    def test_lapsed_suspension_cleared_and_allowed(self, client, db, post):
        user = make_user(
            "returning",
            strike_count=4,
            is_suspended=True,
            suspended_until=timezone.now() - timedelta(minutes=1),
        )
        response = client.post(reverse("blog_trust:like_toggle", args=[post.pk]), **bearer(user))

        assert response.status_code == 200
        row = TrustProfile.objects.get(user=user)
        assert not row.is_suspended
        assert row.suspended_until is None
        assert row.strike_count == 4

    def test_expired_author_downgraded_on_author_action(self, client, db):
        user = make_user(
            "lapsed",
            role=Role.AUTHOR,
            subscription_plan=SubscriptionPlan.MONTHLY,
            subscription_expires_at=timezone.now() - timedelta(days=2),
        )
        response = post_json(client, reverse("blog_trust:post_create"), {"title": "Hi"}, **bearer(user))

        assert response.status_code == 403
        assert response.json()["status"] == "SUBSCRIPTION_EXPIRED"
        row = TrustProfile.objects.get(user=user)
        assert row.role == Role.USER
        assert row.subscription_plan is None
        assert row.subscription_expires_at is None
        assert not Post.objects.exists()

    def test_live_author_can_post(self, client, db):
        user = make_user(
            "writer",
            role=Role.AUTHOR,
            subscription_plan=SubscriptionPlan.WEEKLY,
            subscription_expires_at=timezone.now() + timedelta(days=2),
        )
        response = post_json(client, reverse("blog_trust:post_create"), {"title": "Fresh"}, **bearer(user))

        assert response.status_code == 201
        assert response.json()["latest"] is True

    def test_plain_user_cannot_post(self, client, user):
        response = post_json(client, reverse("blog_trust:post_create"), {"title": "Hi"}, **bearer(user))
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Please subscribe to become an Author."

    def test_creator_posts_without_subscription(self, client, db):
        user = make_user("founder", role=Role.CREATOR)
        response = post_json(client, reverse("blog_trust:post_create"), {"title": "Hi"}, **bearer(user))
        assert response.status_code == 201

    def test_stored_role_wins_over_token_role(self, client, user, other_user):
        """A token claiming ADMIN does not grant admin rights to a USER."""
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[other_user.pk]),
            {},
            **bearer(user, role=Role.ADMIN),
        )
        assert response.status_code == 403


class TestSuspendEndpoint:
    """Administrative strikes."""

    def test_suspend(self, client, admin_user, user):
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[user.pk]),
            {"reason": "Spam", "durationHours": 2},
            **bearer(admin_user),
        )
        body = response.json()
        assert response.status_code == 200
        assert body["message"] == "User suspended for 2 hour(s)."
        assert set(body["user"]) == {
            "id", "username", "strikeCount", "isSuspended", "isBanned", "suspendedUntil",
        }
        assert body["user"]["strikeCount"] == 1
        assert body["user"]["isSuspended"] is True
        assert body["user"]["isBanned"] is False

    def test_manual_ban(self, client, admin_user, user):
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[user.pk]),
            {"manualBan": True},
            **bearer(admin_user),
        )
        assert response.status_code == 200
        assert response.json()["user"]["isBanned"] is True
        assert response.json()["user"]["suspendedUntil"] is None

    def test_already_banned(self, client, admin_user, db):
        target = make_user("exiled", is_banned=True)
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[target.pk]),
            {},
            **bearer(admin_user),
        )
        assert response.status_code == 400
        assert response.json()["message"] == "User is already banned."

    def test_unknown_target(self, client, admin_user):
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[999999]),
            {},
            **bearer(admin_user),
        )
        assert response.status_code == 404

    @pytest.mark.parametrize("duration", ["forever", 0, 1e9])
    def test_invalid_duration(self, client, admin_user, user, duration):
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[user.pk]),
            {"durationHours": duration},
            **bearer(admin_user),
        )
        assert response.status_code == 400
        assert TrustProfile.objects.get(user=user).strike_count == 0

    def test_non_admin_denied(self, client, user, other_user):
        response = patch_json(
            client,
            reverse("blog_trust:suspend_user", args=[other_user.pk]),
            {},
            **bearer(user),
        )
        assert response.status_code == 403
        assert response.json()["message"] == "Access denied. Admins only."
        assert TrustProfile.objects.get(user=other_user).strike_count == 0

    def test_lift_suspension(self, client, admin_user, db):
        target = make_user("benched", strike_count=2, is_suspended=True,
                           suspended_until=timezone.now() + timedelta(hours=3))
        response = post_json(
            client,
            reverse("blog_trust:unsuspend_user", args=[target.pk]),
            **bearer(admin_user),
        )
        assert response.status_code == 200
        assert response.json()["user"]["isSuspended"] is False
        assert response.json()["user"]["strikeCount"] == 2


class TestSubscriptionEndpoints:
    """Plan grants, payment initiation and payment verification."""

    def test_initiate_then_verify(self, client, user, fake_gateway):
        response = post_json(
            client,
            reverse("blog_trust:payment_initiate"),
            {"plan": "MONTHLY"},
            **bearer(user),
        )
        body = response.json()
        assert response.status_code == 200
        assert body["amount"] == "15000"
        assert body["currency"] == "NGN"
        assert body["paymentLink"].endswith(body["tx_ref"])
        assert TrustProfile.objects.get(user=user).role == Role.USER

        fake_gateway.register(body["tx_ref"], "MONTHLY")
        verified = post_json(
            client,
            reverse("blog_trust:payment_verify"),
            {"tx_ref": body["tx_ref"]},
            **bearer(user),
        )
        assert verified.status_code == 200
        assert verified.json()["user"]["role"] == "AUTHOR"

    def test_initiate_invalid_plan(self, client, user):
        response = post_json(client, reverse("blog_trust:payment_initiate"), {"plan": "DAILY"}, **bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid subscription plan"

    def test_initiate_requires_login(self, client, db):
        response = post_json(client, reverse("blog_trust:payment_initiate"), {"plan": "WEEKLY"})
        assert response.status_code == 401

    def test_initiate_without_gateway(self, client, user, settings):
        settings.BLOG_TRUST = {**settings.BLOG_TRUST, "PAYMENT_GATEWAY": None}
        response = post_json(client, reverse("blog_trust:payment_initiate"), {"plan": "WEEKLY"}, **bearer(user))
        assert response.status_code == 503

    def test_grant(self, client, user):
        response = post_json(client, reverse("blog_trust:subscription_grant"), {"plan": "MONTHLY"}, **bearer(user))

        body = response.json()
        assert response.status_code == 200
        assert body["user"]["role"] == "AUTHOR"
        assert body["user"]["subscriptionPlan"] == "MONTHLY"
        assert body["user"]["subscriptionExpiresAt"] is not None

    def test_grant_invalid_plan(self, client, user):
        response = post_json(client, reverse("blog_trust:subscription_grant"), {"plan": "DAILY"}, **bearer(user))
        assert response.status_code == 400
        assert response.json()["message"] == "Invalid subscription plan"

    def test_verify_payment(self, client, user):
        FakeGateway.register("ref-xyz", "YEARLY", amount="150000")
        response = post_json(
            client,
            reverse("blog_trust:payment_verify"),
            {"tx_ref": "ref-xyz"},
            **bearer(user),
        )

        assert response.status_code == 200
        assert response.json()["user"]["subscriptionPlan"] == "YEARLY"
        assert Payment.objects.get(tx_ref="ref-xyz").user == user

        replay = post_json(
            client,
            reverse("blog_trust:payment_verify"),
            {"tx_ref": "ref-xyz"},
            **bearer(user),
        )
        assert replay.status_code == 409

    def test_verify_failed_payment(self, client, user):
        response = post_json(
            client,
            reverse("blog_trust:payment_verify"),
            {"tx_ref": "unknown-ref"},
            **bearer(user),
        )
        assert response.status_code == 400
        assert TrustProfile.objects.get(user=user).role == Role.USER

    def test_verify_requires_reference(self, client, user):
        response = post_json(client, reverse("blog_trust:payment_verify"), {}, **bearer(user))
        assert response.status_code == 400


class TestLikeEndpoints:
    """Like toggling over HTTP."""

    def test_toggle_and_status(self, client, post, readers):
        url = reverse("blog_trust:like_toggle", args=[post.pk])
        for reader in readers[:3]:
            response = client.post(url, **bearer(reader))
            assert response.status_code == 200

        body = response.json()
        assert body["liked"] is True
        assert body["count"] == 3
        assert body["trending"] is True

        status = client.get(reverse("blog_trust:like_status", args=[post.pk]), **bearer(readers[0]))
        assert status.json() == {"count": 3, "userLiked": True}

    def test_missing_post(self, client, user):
        response = client.post(reverse("blog_trust:like_toggle", args=[4242]), **bearer(user))
        assert response.status_code == 404
        assert response.json()["message"] == "Blog not found"


class TestOwnership:
    """Owner-or-staff checks on deletes."""

    def test_owner_deletes_post(self, client, user, post):
        response = client.delete(reverse("blog_trust:post_delete", args=[post.pk]), **bearer(user))
        assert response.status_code == 200
        post.refresh_from_db()
        assert post.is_deleted

    def test_other_user_denied(self, client, other_user, post):
        response = client.delete(reverse("blog_trust:post_delete", args=[post.pk]), **bearer(other_user))
        assert response.status_code == 403
        post.refresh_from_db()
        assert not post.is_deleted

    def test_admin_deletes_comment(self, client, admin_user, user, post):
        comment = Comment.objects.create(post=post, author=user, body="hello")
        response = client.delete(reverse("blog_trust:comment_delete", args=[comment.pk]), **bearer(admin_user))
        assert response.status_code == 200

    def test_missing_comment(self, client, user):
        response = client.delete(reverse("blog_trust:comment_delete", args=[31337]), **bearer(user))
        assert response.status_code == 404
        assert response.json()["message"] == "Comment not found"


@pytest.mark.django_db
def test_unauthenticated_requests_pass_through_middleware(client):
    """Requests without a token reach views that do not require one."""
    response = post_json(client, reverse("blog_trust:token_obtain"), {})
    assert response.status_code == 400
