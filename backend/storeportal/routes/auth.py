# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

"""
Portal sign-in.

Valid credentials are not enough: the portal gate (access_service) must
also allow the identity. Cashiers and users with no store get the specific
denial message here so the login screen can show it; everywhere else a
denied identity only sees "Access denied".
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..decorators import require_auth, require_portal_access, bearer_token
from ..services import auth_service, session_service, access_service
from ..services.store_context import StoreContext


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _portal_payload(user, session, capabilities) -> dict:
    context = StoreContext.load(user, session.selected_store_id)
    if context.selected_id != session.selected_store_id:
        session_service.set_selected_store(session, context.selected_id)

    return {
        "user": user.to_dict(),
        "capabilities": capabilities.to_dict(context.selected),
        "stores": [store.to_dict() for store in context.stores],
        "selected_store_id": context.selected_id,
        "session": session.to_dict(),
    }


@auth_bp.post("/login")
def login_route():
    """
    Email/password sign-in.

    Returns access and refresh tokens, capabilities and the resolved store
    selection. 401 for bad credentials, 403 (with reason) when the portal
    gate denies the identity.
    """
    try:
        data = request.get_json(silent=True) or {}
        email = data.get("email")
        password = data.get("password")

        if not all([email, password]):
            return jsonify({"error": "Email and password are required"}), 400

        user = auth_service.authenticate(email, password)
        if not user:
            return jsonify({"error": "Invalid email or password"}), 401

        decision = access_service.evaluate_portal_access(user)
        if not decision.allowed:
            current_app.logger.info("Portal login denied for user %s (%s)", user.id, decision.reason)
            return jsonify({"error": decision.message, "reason": decision.reason}), 403

        issued = session_service.create_session(
            user_id=user.id,
            user_agent=request.headers.get("User-Agent"),
            ip_address=request.remote_addr,
        )

        payload = _portal_payload(user, issued.session, decision.capabilities)
        payload.update({
            "access_token": issued.access_token,
            "refresh_token": issued.refresh_token,
            "message": "Login successful",
        })
        return jsonify(payload), 200

    except Exception:
        current_app.logger.exception("Failed to login user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/refresh")
def refresh_route():
    """Rotate both tokens. A stale or unknown refresh token signs the client out."""
    try:
        data = request.get_json(silent=True) or {}
        refresh_token = data.get("refresh_token")
        if not refresh_token:
            return jsonify({"error": "refresh_token is required"}), 400

        try:
            issued = session_service.refresh_session(refresh_token)
        except session_service.SessionError as exc:
            current_app.logger.info("Refresh rejected: %s", exc)
            return jsonify({"error": str(exc), "sign_out": True}), 401

        return jsonify({
            "access_token": issued.access_token,
            "refresh_token": issued.refresh_token,
            "session": issued.session.to_dict(),
        }), 200

    except Exception:
        current_app.logger.exception("Failed to refresh session")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.post("/logout")
def logout_route():
    """Revoke the session; this also forgets the selected store."""
    try:
        token = bearer_token()
        if not token:
            return jsonify({"error": "Authorization header required"}), 401

        if not session_service.revoke_session(token, reason="User logout"):
            return jsonify({"error": "Invalid or expired token", "sign_out": True}), 401

        return jsonify({"message": "Logout successful"}), 200

    except Exception:
        current_app.logger.exception("Failed to logout user")
        return jsonify({"error": "Internal server error"}), 500


@auth_bp.get("/me")
@require_auth
@require_portal_access
def me_route():
    """Current user, capabilities (sidebar screens included) and store selection."""
    try:
        return jsonify(_portal_payload(g.current_user, g.session_context.session, g.capabilities)), 200
    except Exception:
        current_app.logger.exception("Failed to load current user")
        return jsonify({"error": "Internal server error", "retryable": True}), 500
