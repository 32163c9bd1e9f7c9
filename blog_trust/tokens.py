"""
Bearer token helpers.

Tokens are HS256 JWTs carrying the user id, the role and an expiry. The
role travels lower-cased and is normalized to a Role member here, once,
so nothing downstream re-derives its casing.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone as dt_timezone

import jwt

from .conf import trust_settings
from .exceptions import TokenExpired, TokenInvalid, TokenMissing
from .models import Role


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    role: Role


def issue_token(user_id, role, ttl_hours=None, now=None):
    """Sign a bearer token for user_id."""
    now = now or datetime.now(dt_timezone.utc)
    ttl = trust_settings.TOKEN_TTL_HOURS if ttl_hours is None else ttl_hours
    payload = {
        "sub": str(user_id),
        "role": Role.normalize(role).value.lower(),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=ttl)).timestamp()),
    }
    return jwt.encode(payload, trust_settings.JWT_SECRET, algorithm=trust_settings.JWT_ALGORITHM)


def verify_token(token):
    """
    Validate signature and expiry and return the token claims.

    Raises TokenExpired or TokenInvalid.
    """
    try:
        payload = jwt.decode(
            token,
            trust_settings.JWT_SECRET,
            algorithms=[trust_settings.JWT_ALGORITHM],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenExpired()
    except jwt.InvalidTokenError as exc:
        raise TokenInvalid(f"Invalid token: {exc}")

    return TokenClaims(
        user_id=str(payload["sub"]),
        role=Role.normalize(payload.get("role")),
    )


def token_from_header(header):
    """Extract the token from an Authorization header value."""
    if not header or not header.startswith("Bearer "):
        raise TokenMissing()
    token = header[len("Bearer "):].strip()
    if not token:
        raise TokenMissing()
    return token
