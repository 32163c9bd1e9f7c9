"""
Error taxonomy for django-blog-trust.

Every error carries the HTTP status it maps to and a stable code so the
middleware can render it without inspecting the type.
"""


class TrustError(Exception):
    """Base class for all errors raised by the trust engine."""

    status_code = 400
    code = "ERROR"
    default_message = "Request could not be processed."

    def __init__(self, message=None, **extra):
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def as_dict(self):
        data = {"message": self.message, "status": self.code}
        data.update(self.extra)
        return data


# Authentication (401)

class TokenMissing(TrustError):
    status_code = 401
    code = "TOKEN_MISSING"
    default_message = "Unauthorized. Token missing"


class TokenInvalid(TrustError):
    status_code = 401
    code = "TOKEN_INVALID"
    default_message = "Invalid token"


class TokenExpired(TokenInvalid):
    code = "TOKEN_EXPIRED"
    default_message = "Token expired"


class UserNotFound(TrustError):
    status_code = 401
    code = "USER_NOT_FOUND"
    default_message = "Unauthorized. User not found."


# Trust state (403)

class AccountBanned(TrustError):
    status_code = 403
    code = "BANNED"
    default_message = "Your account has been permanently banned."


class AccountSuspended(TrustError):
    status_code = 403
    code = "SUSPENDED"
    default_message = "Your account is suspended."

    def __init__(self, suspended_until, remaining, message=None, **extra):
        self.suspended_until = suspended_until
        self.remaining = remaining
        seconds = max(int(remaining.total_seconds()), 0)
        super().__init__(
            message,
            suspendedUntil=suspended_until.isoformat(),
            remainingSeconds=seconds,
            remainingHours=seconds // 3600,
            **extra,
        )


class SubscriptionExpired(TrustError):
    status_code = 403
    code = "SUBSCRIPTION_EXPIRED"
    default_message = "Subscription expired. Please renew."


class RoleDenied(TrustError):
    status_code = 403
    code = "FORBIDDEN"
    default_message = "Access denied."


class OwnershipDenied(TrustError):
    status_code = 403
    code = "OWNERSHIP_DENIED"
    default_message = "Access denied"


# Operation-level

class ValidationError(TrustError):
    status_code = 400
    code = "INVALID"
    default_message = "Invalid request."


class AlreadyBanned(TrustError):
    status_code = 400
    code = "ALREADY_BANNED"
    default_message = "User is already banned."


class PaymentNotSuccessful(TrustError):
    status_code = 400
    code = "PAYMENT_FAILED"
    default_message = "Payment not successful"


class ResourceNotFound(TrustError):
    status_code = 404
    code = "NOT_FOUND"
    default_message = "Not found"


class DuplicatePayment(TrustError):
    status_code = 409
    code = "DUPLICATE_PAYMENT"
    default_message = "Payment has already been applied."


class PersistenceError(TrustError):
    status_code = 500
    code = "PERSISTENCE_ERROR"
    default_message = "Internal server error"
