# Overview: Service-layer operations for session; token issue, validation, refresh and revocation.

"""
Session Token Management

Each sign-in creates one SessionToken row holding a short-lived access
token and a longer-lived refresh token (both stored SHA-256 hashed).
Refreshing rotates both tokens. Any failure to resolve a session is
fail-closed: the caller gets None and must treat the client as signed out.

The session row also carries the selected store id, so sign-out (which
revokes the row) clears the selection.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta

from flask import current_app

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow


class SessionError(Exception):
    """Raised when a session cannot be refreshed; the client must sign in again."""
    pass


@dataclass
class SessionContext:
    """Resolved identity for an authenticated request."""
    user: User
    session: SessionToken


@dataclass
class IssuedTokens:
    session: SessionToken
    access_token: str
    refresh_token: str


def generate_token() -> str:
    """64-character hex string (32 bytes of entropy); never stored in plaintext."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    """SHA-256 is sufficient for high-entropy tokens."""
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def _access_ttl() -> timedelta:
    return timedelta(minutes=current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 60))


def _refresh_ttl() -> timedelta:
    return timedelta(days=current_app.config.get("REFRESH_TOKEN_TTL_DAYS", 30))


def _revoke(session: SessionToken, reason: str) -> None:
    session.is_revoked = True
    session.revoked_at = utcnow()
    session.revoked_reason = reason
    session.selected_store_id = None


def create_session(
    user_id: int,
    user_agent: str | None = None,
    ip_address: str | None = None,
) -> IssuedTokens:
    user = db.session.query(User).filter_by(id=user_id).first()
    if not user:
        raise ValueError("User not found")

    access_token = generate_token()
    refresh_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user_id,
        access_token_hash=hash_token(access_token),
        refresh_token_hash=hash_token(refresh_token),
        created_at=now,
        last_used_at=now,
        access_expires_at=now + _access_ttl(),
        refresh_expires_at=now + _refresh_ttl(),
        user_agent=user_agent,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return IssuedTokens(session=session, access_token=access_token, refresh_token=refresh_token)


def validate_session(token: str) -> SessionContext | None:
    """
    Resolve an access token to its session.

    Returns None if the token is unknown, revoked or expired, or if the
    user has been deactivated (the session is revoked in that case).
    """
    session = db.session.query(SessionToken).filter_by(
        access_token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return None

    now = utcnow()
    if session.access_expires_at < now:
        return None

    user = session.user
    if not user or not user.is_active:
        _revoke(session, "User account deactivated")
        db.session.commit()
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session)


def refresh_session(refresh_token: str) -> IssuedTokens:
    """
    Rotate both tokens of a session.

    Raises SessionError for unknown, revoked or stale refresh tokens. A stale
    refresh token revokes its session so the stored selection is cleared.
    """
    session = db.session.query(SessionToken).filter_by(
        refresh_token_hash=hash_token(refresh_token),
    ).first()

    if not session or session.is_revoked:
        raise SessionError("Invalid refresh token")

    now = utcnow()
    if session.refresh_expires_at < now:
        _revoke(session, "Refresh token expired")
        db.session.commit()
        raise SessionError("Refresh token expired")

    if not session.user or not session.user.is_active:
        _revoke(session, "User account deactivated")
        db.session.commit()
        raise SessionError("User account deactivated")

    access_token = generate_token()
    new_refresh_token = generate_token()
    session.access_token_hash = hash_token(access_token)
    session.refresh_token_hash = hash_token(new_refresh_token)
    session.access_expires_at = now + _access_ttl()
    session.refresh_expires_at = now + _refresh_ttl()
    session.last_used_at = now
    db.session.commit()

    return IssuedTokens(session=session, access_token=access_token, refresh_token=new_refresh_token)


def revoke_session(token: str, reason: str = "User logout") -> bool:
    """Revoke by access token. Returns False if no live session matched."""
    session = db.session.query(SessionToken).filter_by(
        access_token_hash=hash_token(token),
        is_revoked=False,
    ).first()

    if not session:
        return False

    _revoke(session, reason)
    db.session.commit()
    return True


def set_selected_store(session: SessionToken, store_id: int | None) -> None:
    session.selected_store_id = store_id
    db.session.commit()


def cleanup_expired_sessions(retention_days: int = 30) -> int:
    """
    Delete sessions whose refresh window has closed or that were revoked,
    once they are older than the retention window.
    """
    cutoff = utcnow() - timedelta(days=retention_days)

    deleted = db.session.query(SessionToken).filter(
        db.or_(
            SessionToken.refresh_expires_at < utcnow(),
            SessionToken.is_revoked.is_(True),
        ),
        SessionToken.created_at < cutoff,
    ).delete(synchronize_session=False)

    db.session.commit()
    return deleted
