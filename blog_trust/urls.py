"""
URL configuration for django-blog-trust.

Include in your project urls.py:

    path('api/', include('blog_trust.urls')),
"""
from django.urls import path

from . import views

app_name = "blog_trust"

urlpatterns = [
    # Authentication
    path("auth/token/", views.TokenObtainView.as_view(), name="token_obtain"),
    path("me/trust/", views.TrustStatusView.as_view(), name="trust_status"),

    # Moderation
    path("suspend/<int:pk>/", views.SuspendUserView.as_view(), name="suspend_user"),
    path("suspend/<int:pk>/lift/", views.UnsuspendUserView.as_view(), name="unsuspend_user"),

    # Subscriptions
    path("subscription/grant/", views.SubscriptionGrantView.as_view(), name="subscription_grant"),
    path("subscription/initiate/", views.PaymentInitiateView.as_view(), name="payment_initiate"),
    path("subscription/verify/", views.PaymentVerifyView.as_view(), name="payment_verify"),

    # Posts and comments
    path("blogs/", views.PostCreateView.as_view(), name="post_create"),
    path("blogs/<int:pk>/", views.PostDeleteView.as_view(), name="post_delete"),
    path("comments/<int:pk>/", views.CommentDeleteView.as_view(), name="comment_delete"),

    # Likes
    path("blogs/<int:pk>/like/", views.LikeToggleView.as_view(), name="like_toggle"),
    path("blogs/<int:pk>/likes/", views.LikeStatusView.as_view(), name="like_status"),
]
