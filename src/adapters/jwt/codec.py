"""
JWT codec adapter - Implements TokenCodec protocol with PyJWT.

Access tokens are stateless: validity is the HMAC signature plus the
embedded expiry. Nothing is persisted, so an access token cannot be
revoked before it expires (including after a password reset).
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

import jwt

from src.domain.exceptions import BadTokenSignature, ExpiredAccessToken, MalformedAccessToken
from src.domain.models import AccessClaims

_REGISTERED_CLAIMS = ("sub", "iat", "exp")


def _utcnow() -> datetime:
    return datetime.now(UTC)


class JwtTokenCodec:
    """
    Implements TokenCodec protocol via PyJWT.

    Uses structural subtyping - no explicit inheritance from Protocol.
    The clock is injectable so expiry can be checked deterministically.
    """

    def __init__(
        self,
        secret: str,
        expiration_seconds: int,
        algorithm: str = "HS512",
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._secret = secret
        self._expiration = timedelta(seconds=expiration_seconds)
        self._algorithm = algorithm
        self._clock = clock

    @property
    def expiry_duration(self) -> int:
        return int(self._expiration.total_seconds())

    def issue_access_token(self, account_id: UUID, claims: dict[str, Any] | None = None) -> str:
        """
        Create a signed access token for an account.

        Args:
            account_id: Account UUID, stored in the sub claim
            claims: Extra non-registered claims to embed

        Returns:
            Encoded JWT string
        """
        now = self._clock()
        payload = dict(claims or {})
        payload.update(
            {
                "sub": str(account_id),
                "iat": now,
                "exp": now + self._expiration,
            }
        )
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def validate_access_token(self, token: str) -> AccessClaims:
        """
        Check signature and expiry and return the claims.

        Expiry is compared against the injected clock rather than PyJWT's
        own wall clock.

        Raises:
            BadTokenSignature: Signature does not verify
            MalformedAccessToken: Not a JWT or registered claims missing
            ExpiredAccessToken: Now is past the embedded expiry
        """
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": list(_REGISTERED_CLAIMS), "verify_exp": False, "verify_iat": False},
            )
        except jwt.InvalidSignatureError as e:
            raise BadTokenSignature("Invalid JWT signature") from e
        except jwt.InvalidTokenError as e:
            raise MalformedAccessToken(f"Malformed JWT: {e}") from e

        try:
            issued_at = datetime.fromtimestamp(int(payload["iat"]), UTC)
            expires_at = datetime.fromtimestamp(int(payload["exp"]), UTC)
        except (TypeError, ValueError) as e:
            raise MalformedAccessToken("Malformed JWT timestamps") from e

        if self._clock() >= expires_at:
            raise ExpiredAccessToken("Expired JWT token")

        extra = {k: v for k, v in payload.items() if k not in _REGISTERED_CLAIMS}
        return AccessClaims(
            subject=str(payload["sub"]),
            issued_at=issued_at,
            expires_at=expires_at,
            extra=extra,
        )
