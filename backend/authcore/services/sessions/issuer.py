# authcore/services/sessions/issuer.py
from __future__ import annotations

from datetime import UTC, datetime, timedelta

from authcore.services._shared.errors import InvalidTokenError
from authcore.services._shared.ports import ACCESS_TOKEN_TYPE, TokenProvider
from authcore.services.sessions.dto import AccessClaims, IdentityClaims


def _claim_time(value: object) -> datetime:
    if not isinstance(value, int | float):
        raise InvalidTokenError()
    return datetime.fromtimestamp(value, tz=UTC)


class AccessTokenIssuer:
    """
    Sign and verify short-lived access tokens.

    Verification is purely cryptographic (signature, structure, type and
    expiry); it never consults the session store, so a revoked session's
    access token stays valid until it expires.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        access_expires: timedelta = timedelta(minutes=15),
    ) -> None:
        self.tokens = token_provider
        self.access_expires = access_expires

    def issue(self, claims: IdentityClaims) -> str:
        """
        Sign ``{sub, email, role}`` with the configured access lifetime.

        :param claims: Identity facts to embed.
        :returns: Encoded access JWT.
        """
        return self.tokens.create_access_token(
            identity=claims.user_id,
            additional_claims={"email": claims.email, "role": claims.role},
            expires_delta=self.access_expires,
        )

    def verify(self, token: str) -> AccessClaims:
        """
        :raises InvalidTokenError: On any signature, structure, type or expiry problem.
        """
        raw = self.tokens.decode(token, expected_type=ACCESS_TOKEN_TYPE)
        email, role = raw.get("email"), raw.get("role")
        if not isinstance(email, str) or not isinstance(role, str):
            raise InvalidTokenError()
        return AccessClaims(
            user_id=str(raw["sub"]),
            email=email,
            role=role,
            issued_at=_claim_time(raw["iat"]),
            expires_at=_claim_time(raw["exp"]),
        )
