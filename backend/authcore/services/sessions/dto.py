# authcore/services/sessions/dto.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class IdentityClaims:
    """
    Identity facts embedded in an access token.

    Supplied by the credential-verification collaborator at login, and by the
    identity directory on rotation.

    :param user_id: Verified user identifier.
    :type user_id: str
    :param email: Normalized email address.
    :type email: str
    :param role: Authorization role (e.g. ``"USER"``, ``"ADMIN"``).
    :type role: str
    """

    user_id: str
    email: str
    role: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AccessClaims:
    """
    Verified content of an access token.

    :param user_id: ``sub`` claim.
    :param email: ``email`` claim.
    :param role: ``role`` claim.
    :param issued_at: ``iat`` as an aware UTC datetime.
    :param expires_at: ``exp`` as an aware UTC datetime.
    """

    user_id: str
    email: str
    role: str
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class RefreshEnvelope:
    """
    Verified content of a refresh token: exactly who, which session, until when.
    """

    user_id: str
    session_id: str
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class TokenPair:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT (Bearer header).
    :param refresh_token: Encoded refresh JWT (HTTP-only cookie).
    :param refresh_expires_at: Expiry of the refresh envelope, for cookie ``Max-Age``.
    """

    access_token: str
    refresh_token: str
    refresh_expires_at: datetime


# ------------------------ Config DTO -------------------------------------- #


@dataclass(frozen=True, slots=True)
class SessionTokenConfig:
    """
    Token emission configuration.

    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token / session record lifetime.
    :type refresh_expires: timedelta
    """

    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)
