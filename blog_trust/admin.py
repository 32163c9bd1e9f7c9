"""
Django admin configuration for blog_trust.
"""
from django.contrib import admin, messages

from .exceptions import AlreadyBanned
from .models import BlogLike, Comment, Payment, Post, Strike, TrustProfile
from .suspension import SuspensionEngine


class StrikeInline(admin.TabularInline):
    """Read-only moderation history on the profile page."""

    model = Strike
    fk_name = "profile"
    extra = 0
    can_delete = False
    fields = ["action", "strike_number", "reason", "suspended_until", "actioned_by", "created_at"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(TrustProfile)
class TrustProfileAdmin(admin.ModelAdmin):
    list_display = [
        "user",
        "role",
        "strike_count",
        "is_suspended",
        "suspended_until",
        "is_banned",
        "subscription_plan",
        "subscription_expires_at",
    ]
    list_filter = ["role", "is_banned", "is_suspended", "subscription_plan"]
    search_fields = ["user__username", "user__email"]
    raw_id_fields = ["user"]
    # Moderation state is changed through the actions only.
    readonly_fields = [
        "strike_count",
        "is_banned",
        "is_suspended",
        "suspended_until",
        "created_at",
        "updated_at",
    ]
    inlines = [StrikeInline]

    fieldsets = (
        (None, {
            "fields": ("user", "role")
        }),
        ("Moderation", {
            "fields": (
                "strike_count",
                "is_suspended",
                "suspended_until",
                "is_banned",
                "suspension_reason",
            )
        }),
        ("Subscription", {
            "fields": ("subscription_plan", "subscription_expires_at"),
        }),
        ("Metadata", {
            "fields": ("created_at", "updated_at"),
            "classes": ("collapse",),
        }),
    )

    actions = ["strike_users", "ban_users", "unsuspend_users"]

    @admin.action(description="Apply a strike to selected users")
    def strike_users(self, request, queryset):
        self._apply(request, queryset, manual_ban=False)

    @admin.action(description="Ban selected users")
    def ban_users(self, request, queryset):
        self._apply(request, queryset, manual_ban=True)

    @admin.action(description="Lift suspension of selected users")
    def unsuspend_users(self, request, queryset):
        engine = SuspensionEngine()
        for profile in queryset:
            engine.unsuspend(profile.user_id, actioned_by=request.user)
        self.message_user(request, f"{queryset.count()} users unsuspended.")

    def _apply(self, request, queryset, manual_ban):
        engine = SuspensionEngine()
        applied = 0
        for profile in queryset:
            try:
                engine.apply_strike(profile.user_id, manual_ban=manual_ban, actioned_by=request.user)
            except AlreadyBanned:
                self.message_user(request, f"{profile.user} is already banned.", messages.WARNING)
                continue
            applied += 1
        self.message_user(request, f"{applied} users updated.")


@admin.register(Strike)
class StrikeAdmin(admin.ModelAdmin):
    list_display = ["profile", "action", "strike_number", "reason", "actioned_by", "created_at"]
    list_filter = ["action", "created_at"]
    search_fields = ["profile__user__username", "reason"]
    raw_id_fields = ["profile", "actioned_by"]
    readonly_fields = ["created_at"]


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["tx_ref", "user", "plan", "amount", "currency", "status", "created_at"]
    list_filter = ["plan", "status", "created_at"]
    search_fields = ["tx_ref", "transaction_id", "user__username"]
    raw_id_fields = ["user"]
    readonly_fields = ["created_at"]


@admin.register(Post)
class PostAdmin(admin.ModelAdmin):
    list_display = ["title", "author", "latest", "trending", "like_count", "is_deleted", "created_at"]
    list_filter = ["latest", "trending", "is_deleted", "created_at"]
    search_fields = ["title", "body", "author__username"]
    raw_id_fields = ["author"]
    date_hierarchy = "created_at"
    readonly_fields = ["trending", "created_at", "updated_at"]
    prepopulated_fields = {"slug": ("title",)}


@admin.register(Comment)
class CommentAdmin(admin.ModelAdmin):
    list_display = ["author", "post", "is_deleted", "created_at"]
    list_filter = ["is_deleted", "created_at"]
    search_fields = ["body", "author__username", "post__title"]
    raw_id_fields = ["post", "author"]


@admin.register(BlogLike)
class BlogLikeAdmin(admin.ModelAdmin):
    list_display = ["user", "post", "liked", "created_at"]
    list_filter = ["liked", "created_at"]
    search_fields = ["user__username", "post__title"]
    raw_id_fields = ["user", "post"]
