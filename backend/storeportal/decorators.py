# Overview: Request decorators for API routes; session, portal gate, store scope and feature flags.

from functools import wraps
from flask import request, jsonify, g, current_app

from .services import session_service, access_service
from .services.store_context import StoreContext


def _sign_out(message: str, status: int = 401):
    return jsonify({"error": message, "sign_out": True}), status


def bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip() or None


def require_auth(f):
    """
    Require a live session.

    Sets:
    - g.current_user: the authenticated User
    - g.session_context: SessionContext (user + session row)

    Returns 401 with sign_out=true when the header is missing or the token
    does not resolve to a live session.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = bearer_token()
        if not token:
            return _sign_out("Authentication required")

        context = session_service.validate_session(token)
        if not context:
            return _sign_out("Invalid or expired token")

        g.current_user = context.user
        g.session_context = context

        return f(*args, **kwargs)

    return decorated_function


def require_portal_access(f):
    """
    Re-run the portal gate on every request; access can be lost mid-session
    (role change, last assignment removed).

    Sets g.access and g.capabilities. Denied identities are signed out and
    get a bare 403.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not hasattr(g, "current_user"):
            return _sign_out("Authentication required")

        decision = access_service.evaluate_portal_access(g.current_user)
        if not decision.allowed:
            current_app.logger.info(
                "Portal access revoked for user %s (%s)", g.current_user.id, decision.reason
            )
            session_service.revoke_session(bearer_token() or "", reason=f"Portal access lost: {decision.reason}")
            return _sign_out("Access denied", 403)

        g.access = decision
        g.capabilities = decision.capabilities

        return f(*args, **kwargs)

    return decorated_function


def require_store(f):
    """
    Resolve the selected store for this request.

    Sets g.store_context and g.store. The resolved id is written back to the
    session row when the fallback picked a different store. 409 when the user
    has no visible store at all.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        session = g.session_context.session
        context = StoreContext.load(g.current_user, session.selected_store_id)

        if context.selected_id != session.selected_store_id:
            session_service.set_selected_store(session, context.selected_id)

        g.store_context = context
        g.store = context.selected

        if g.store is None:
            return jsonify({"error": "No store selected"}), 409

        return f(*args, **kwargs)

    return decorated_function


def require_feature(flag: str):
    """
    Block mutations on a feature that is off for the selected store.

    Read endpoints check the flag themselves so they can render the
    disabled payload instead of an error.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            decision = access_service.check_feature(g.store, flag)
            if not decision.enabled:
                return jsonify({"error": decision.message, "feature": flag}), 403
            return f(*args, **kwargs)

        return decorated_function
    return decorator


def portal_route(f):
    """Shorthand for the common stack: session, portal gate, selected store."""
    return require_auth(require_portal_access(require_store(f)))
