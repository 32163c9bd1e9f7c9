"""
Bearer-token authentication and trust gate middleware.

Add to MIDDLEWARE:

    MIDDLEWARE = [
        ...
        "blog_trust.middleware.TrustStateMiddleware",
    ]

For every request carrying an Authorization header the middleware verifies
the token, loads the caller's trust profile and runs the trust gate, which
may lift a lapsed suspension as a side effect. The outcome is attached to
the request:

    request.trust_profile  TrustProfile of an allowed caller, else None
    request.trust_role     Role of that caller, else None
    request.trust_error    TrustError raised while authenticating, else None
    request.trust_gate     TrustGate used for further checks

Failures are not rendered here: views opt in through the decorators in
blog_trust.decorators, which re-raise trust_error. TrustError raised from a
view is rendered as JSON by process_exception.
"""
import logging

from django.db import DatabaseError
from django.http import JsonResponse

from .exceptions import TrustError
from .models import Role
from .tokens import token_from_header, verify_token
from .trust import TrustGate

logger = logging.getLogger(__name__)


class TrustStateMiddleware:
    """Authenticate bearer tokens and evaluate the caller's trust state."""

    def __init__(self, get_response, gate=None):
        self.get_response = get_response
        self.gate = gate or TrustGate()

    def __call__(self, request):
        request.trust_profile = None
        request.trust_role = None
        request.trust_error = None
        request.trust_gate = self.gate

        header = request.headers.get("Authorization")
        if header:
            try:
                self.authenticate(request, header)
            except TrustError as exc:
                request.trust_error = exc
            except DatabaseError:
                logger.exception("Trust check failed for %s %s", request.method, request.path)
                return JsonResponse({"message": "Internal server error"}, status=500)

        return self.get_response(request)

    def authenticate(self, request, header):
        claims = verify_token(token_from_header(header))
        profile = self.gate.check(claims.user_id)
        request.trust_profile = profile
        # The stored role is authoritative; the token's role may predate a
        # downgrade or promotion.
        request.trust_role = Role.normalize(profile.role)

    def process_exception(self, request, exception):
        if isinstance(exception, TrustError):
            if exception.status_code >= 500:
                logger.error("Trust engine failure on %s: %s", request.path, exception)
            return JsonResponse(exception.as_dict(), status=exception.status_code)
        if isinstance(exception, DatabaseError):
            logger.exception("Persistence failure on %s %s", request.method, request.path)
            return JsonResponse({"message": "Internal server error"}, status=500)
        return None
