"""
Bearer token verification (HS256 JWT via python-jose).
"""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import ExpiredSignatureError, JWTError, jwt

from directrent.core.config import settings
from directrent.core.errors import ExpiredCredential, InvalidCredential
from directrent.identity.models import TokenClaims

# Legacy tokens carry the subject as "userId".
SUBJECT_CLAIMS = ("sub", "userId")


def _ts(value: Any) -> datetime | None:
    if value is None:
        return None
    try:
        return datetime.fromtimestamp(int(value), tz=timezone.utc)
    except (TypeError, ValueError):
        return None


class TokenVerifier:
    def __init__(
        self,
        secret_key: str | None = None,
        algorithm: str | None = None,
    ) -> None:
        self.secret_key = secret_key or settings.jwt_secret_key
        self.algorithm = algorithm or settings.jwt_algorithm

    def verify(self, token: str) -> TokenClaims:
        if not token or not isinstance(token, str):
            raise InvalidCredential("No token provided")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise ExpiredCredential("Token expired") from e
        except JWTError as e:
            raise InvalidCredential("Invalid token") from e

        subject = next((payload.get(c) for c in SUBJECT_CLAIMS if payload.get(c)), None)
        if not subject:
            raise InvalidCredential("Token has no subject")

        return TokenClaims(
            subject_id=str(subject),
            issued_at=_ts(payload.get("iat")),
            expires_at=_ts(payload.get("exp")),
        )

    def create_access_token(
        self,
        subject_id: str,
        expires_delta: timedelta | None = None,
        now_utc: datetime | None = None,
    ) -> str:
        """
        Create a signed access token for subject_id.

        Args:
            subject_id: user id placed in the "sub" claim
            expires_delta: lifetime; defaults to settings.access_token_ttl_minutes
            now_utc: current time (for tests). Defaults to datetime.now(timezone.utc).
        """
        now = now_utc if now_utc is not None else datetime.now(timezone.utc)
        ttl = expires_delta if expires_delta is not None else timedelta(minutes=settings.access_token_ttl_minutes)
        claims = {
            "sub": subject_id,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
