# authcore/services/sessions/service.py
from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import NoReturn

from authcore.services._shared.base import BaseService, ServiceContext
from authcore.services._shared.errors import (
    InvalidTokenError,
    RotationOutcome,
    StoreUnavailableError,
    UnauthorizedError,
)
from authcore.services._shared.ports import (
    REFRESH_TOKEN_TYPE,
    IdentityDirectory,
    SessionRecord,
    SessionStore,
    TokenProvider,
)
from authcore.services._shared.ports.session_store import utcnow
from authcore.services.sessions.dto import (
    AccessClaims,
    IdentityClaims,
    RefreshEnvelope,
    SessionTokenConfig,
    TokenPair,
)
from authcore.services.sessions.issuer import AccessTokenIssuer

log = logging.getLogger(__name__)

# Never sign a refresh token that is already (or about to be) expired
_MIN_REFRESH_LIFETIME = timedelta(seconds=1)


class SessionService(BaseService):
    """
    Session lifecycle service: issue, rotate, revoke.

    Refresh tokens are single-use. Each one is the signed envelope of exactly
    one row in the :class:`SessionStore`; rotation consumes that row and
    creates its successor in a single atomic store operation. A refresh
    token whose row is already gone is treated as replayed: every session of
    the user is revoked so that whichever party holds the live successor is
    logged out too.

    Security
    --------
    - The session row is committed before any token string referencing it
      exists, so a token is never valid without its record.
    - Every rotation failure surfaces with the same message; the reason is
      only logged.
    - Token strings and session ids are never logged.
    """

    def __init__(
        self,
        *,
        token_provider: TokenProvider,
        session_store: SessionStore,
        identity_directory: IdentityDirectory,
        token_cfg: SessionTokenConfig | None = None,
        clock: Callable[[], datetime] = utcnow,
        ctx: ServiceContext | None = None,
    ) -> None:
        """
        Initialize the service with its collaborators.

        :param token_provider: Adapter for signing/decoding JWTs.
        :param session_store: Durable table of outstanding refresh sessions.
        :param identity_directory: Resolves current claims on rotation.
        :param token_cfg: Access/refresh lifetimes.
        :param clock: UTC time source.
        :param ctx: Request-scoped context.
        """
        super().__init__(ctx=ctx)
        self.tokens = token_provider
        self.store = session_store
        self.identities = identity_directory
        self.cfg = token_cfg or SessionTokenConfig()
        self.clock = clock
        self.issuer = AccessTokenIssuer(
            token_provider=token_provider,
            access_expires=self.cfg.access_expires,
        )

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue_pair(self, user_id: str, claims: IdentityClaims) -> TokenPair:
        """
        Open a new session and sign its token pair.

        Called after login and registration.

        :param user_id: Verified user identifier.
        :param claims: Identity facts for the access token.
        :returns: Fresh access/refresh pair.
        :raises ValueError: If ``claims`` belong to another user.
        :raises StoreUnavailableError: If the session cannot be persisted.
        """
        user_id = str(user_id)
        if claims.user_id != user_id:
            raise ValueError("Identity claims do not belong to the session owner.")

        pair = self._sign_pair(self.store.create(user_id), claims)
        self._security_event("session.issued", user_id=user_id)
        return pair

    def _sign_pair(self, record: SessionRecord, claims: IdentityClaims) -> TokenPair:
        """Sign tokens for a session that is already committed. No store access."""
        refresh = self.tokens.create_refresh_token(
            identity=record.user_id,
            expires_delta=max(record.expires_at - self.clock(), _MIN_REFRESH_LIFETIME),
            jti=record.session_id,
        )
        return TokenPair(
            access_token=self.issuer.issue(claims),
            refresh_token=refresh,
            refresh_expires_at=record.expires_at,
        )

    # ------------------------------------------------------------------ #
    # Rotate
    # ------------------------------------------------------------------ #

    def decode_refresh(self, refresh_token: str) -> RefreshEnvelope:
        """
        Verify a refresh token and return its envelope.

        :raises InvalidTokenError: On any signature, structure, type or expiry problem.
        """
        raw = self.tokens.decode(refresh_token, expected_type=REFRESH_TOKEN_TYPE)
        exp = raw["exp"]
        if not isinstance(exp, int | float):
            raise InvalidTokenError()
        return RefreshEnvelope(
            user_id=str(raw["sub"]),
            session_id=str(raw["jti"]),
            expires_at=datetime.fromtimestamp(exp, tz=UTC),
        )

    def rotate(self, refresh_token: str) -> TokenPair:
        """
        Exchange a refresh token for a new pair, exactly once.

        Steps
        -----
        1. Verify the envelope. Failure → :class:`UnauthorizedError`.
        2. Load the current identity (read only).
        3. In one store operation, consume the session row and create its
           successor. Row absent → revoke every session of the user, then
           reject.
        4. Sign the successor pair.

        Only signing happens after the store write, so a store failure never
        leaves the old session consumed without a successor. Of several
        concurrent calls with the same token, exactly one succeeds.

        :raises UnauthorizedError: Invalid token, replay, or identity gone.
        :raises StoreUnavailableError: Transient store failure; the session is
            untouched, so the caller may retry with the same token.
        """
        try:
            envelope = self.decode_refresh(refresh_token)
        except InvalidTokenError as exc:
            self._reject(RotationOutcome.INVALID_TOKEN, user_id=None)
            raise UnauthorizedError(RotationOutcome.INVALID_TOKEN) from exc

        claims = self.identities.load_claims(envelope.user_id)
        if claims is None:
            # A gone or deactivated user gets no successor; the session is still spent
            if not self.store.consume_if_present(envelope.session_id, envelope.user_id):
                self._replay_detected(envelope.user_id)
            self._reject(RotationOutcome.IDENTITY_UNAVAILABLE, user_id=envelope.user_id)
            raise UnauthorizedError(RotationOutcome.IDENTITY_UNAVAILABLE)

        successor = self.store.consume_and_replace(envelope.session_id, envelope.user_id)
        if successor is None:
            self._replay_detected(envelope.user_id)

        pair = self._sign_pair(successor, claims)
        self._security_event(
            "session.rotated",
            user_id=envelope.user_id,
            outcome=RotationOutcome.ROTATED.value,
        )
        return pair

    def _replay_detected(self, user_id: str) -> NoReturn:
        self._contain_replay(user_id)
        self._reject(RotationOutcome.REUSED, user_id=user_id)
        raise UnauthorizedError(RotationOutcome.REUSED)

    def _contain_replay(self, user_id: str) -> int:
        """
        Revoke every session of ``user_id`` after a consumed or unknown
        refresh token was presented.
        """
        revoked = self.store.delete_all(user_id)
        self._security_event(
            "session.reuse_detected",
            level=logging.WARNING,
            user_id=user_id,
            revoked=revoked,
            outcome=RotationOutcome.REUSED.value,
        )
        return revoked

    def _reject(self, outcome: RotationOutcome, *, user_id: str | None) -> None:
        self._security_event(
            "session.rejected",
            level=logging.WARNING,
            user_id=user_id,
            outcome=outcome.value,
        )

    # ------------------------------------------------------------------ #
    # Revoke
    # ------------------------------------------------------------------ #

    def logout(self, refresh_token: str | None) -> None:
        """
        End the session behind ``refresh_token``, if any.

        Best effort: invalid tokens and store outages are logged and
        swallowed, so logout always appears to succeed. Idempotent.
        """
        if not refresh_token:
            return
        try:
            envelope = self.decode_refresh(refresh_token)
        except InvalidTokenError:
            log.debug("logout with unverifiable refresh token ignored")
            return

        try:
            self.store.delete(envelope.session_id, envelope.user_id)
        except StoreUnavailableError:
            log.warning("logout could not reach the session store", exc_info=True)
            return
        self._security_event("session.logout", user_id=envelope.user_id)

    def revoke_all(self, user_id: str) -> int:
        """
        Revoke every session of a user (account deactivation, operator action).

        :returns: Number of sessions removed.
        """
        revoked = self.store.delete_all(str(user_id))
        self._security_event("session.revoked_all", user_id=str(user_id), revoked=revoked)
        return revoked

    def purge_expired(self, now: datetime | None = None) -> int:
        """Physically remove expired sessions. :returns: rows removed."""
        purged = self.store.purge_expired(now)
        self._security_event("session.purged", revoked=purged)
        return purged

    def list_sessions(self, user_id: str) -> list[SessionRecord]:
        """Non-expired sessions of a user, oldest first."""
        return self.store.list_active(str(user_id))

    # ------------------------------------------------------------------ #
    # Access tokens
    # ------------------------------------------------------------------ #

    def verify_access_token(self, token: str) -> AccessClaims:
        """
        Verify an access token without touching the session store.

        :raises InvalidTokenError: If the token is not a valid, unexpired access token.
        """
        return self.issuer.verify(token)
