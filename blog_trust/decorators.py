"""
View decorators enforcing authentication, roles and ownership.

All of them rely on TrustStateMiddleware having run, and raise TrustError
subclasses that the middleware renders as JSON.
"""
from functools import wraps

from .exceptions import OwnershipDenied, ResourceNotFound, RoleDenied, TokenMissing
from .models import STAFF_ROLES, Role


def _require_caller(request):
    error = getattr(request, "trust_error", None)
    if error is not None:
        raise error
    if getattr(request, "trust_profile", None) is None:
        raise TokenMissing()
    return request.trust_profile


def login_required(view):
    """Caller must present a valid token and be allowed to act."""

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        _require_caller(request)
        return view(request, *args, **kwargs)

    return wrapper


def role_required(*roles, message="Access denied."):
    """Caller's role must be one of `roles`."""
    allowed = {Role.normalize(role) for role in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            _require_caller(request)
            if request.trust_role not in allowed:
                raise RoleDenied(message)
            return view(request, *args, **kwargs)

        return wrapper

    return decorator


admin_required = role_required(Role.ADMIN, Role.CREATOR, message="Access denied. Admins only.")
creator_required = role_required(Role.CREATOR, message="Access denied. Creator only.")


def author_required(view):
    """
    Caller must be an Author with a live subscription, or ADMIN/CREATOR.

    An Author whose plan has lapsed is downgraded to USER before the
    SubscriptionExpired error is raised.
    """

    @wraps(view)
    def wrapper(request, *args, **kwargs):
        profile = _require_caller(request)
        role = request.trust_role
        if role in STAFF_ROLES:
            return view(request, *args, **kwargs)
        if role != Role.AUTHOR:
            raise RoleDenied("Access denied. Please subscribe to become an Author.")

        profile = request.trust_gate.check(profile.user_id, require_author=True)
        request.trust_profile = profile
        return view(request, *args, **kwargs)

    return wrapper


def owner_or_staff_required(model, owner_field="author_id", url_kwarg="pk", not_found="Not found"):
    """
    Caller must own the object identified by `url_kwarg`, or be ADMIN/CREATOR.

    The object is attached to the request as `trust_target`.
    """

    def decorator(view):
        @wraps(view)
        def wrapper(request, *args, **kwargs):
            profile = _require_caller(request)
            obj = model.objects.filter(pk=kwargs.get(url_kwarg), is_deleted=False).first()
            if obj is None:
                raise ResourceNotFound(not_found)
            if getattr(obj, owner_field) != profile.user_id and request.trust_role not in STAFF_ROLES:
                raise OwnershipDenied()
            request.trust_target = obj
            return view(request, *args, **kwargs)

        return wrapper

    return decorator
