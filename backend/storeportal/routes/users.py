# Overview: Flask API routes for user management; store-scoped users and the assignment editor.

from flask import Blueprint, jsonify, request, g, current_app

from ..decorators import portal_route
from ..services import user_service, assignment_service
from ..services.auth_service import PasswordValidationError
from ..validation import ValidationError, ConflictError, parse_id_list


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@portal_route
def list_users():
    try:
        users = user_service.list_store_users(g.store)
        return jsonify({
            "store_id": g.store.id,
            "users": [user_service.user_detail(user) for user in users],
            "assignable_roles": list(g.capabilities.assignable_roles),
        }), 200
    except Exception:
        current_app.logger.exception("Failed to list users")
        return jsonify({"error": "Internal server error", "retryable": True}), 500


@users_bp.get("/<int:user_id>")
@portal_route
def get_user(user_id: int):
    user = user_service.get_store_user(g.store, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify(user_service.user_detail(user)), 200


@users_bp.post("")
@portal_route
def create_user():
    data = request.get_json(silent=True) or {}
    try:
        user = user_service.create_store_user(
            actor=g.current_user,
            capabilities=g.capabilities,
            current_store=g.store,
            data=data,
            store_ids=parse_id_list(data.get("store_ids")),
        )
        current_app.logger.info("User %s created by user %s", user.id, g.current_user.id)
        return jsonify(user_service.user_detail(user)), 201
    except ConflictError as exc:
        return jsonify({"error": str(exc)}), 409
    except (user_service.UserServiceError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to create user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.put("/<int:user_id>")
@portal_route
def update_user(user_id: int):
    user = user_service.get_store_user(g.store, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        user = user_service.update_store_user(
            actor=g.current_user,
            capabilities=g.capabilities,
            user=user,
            data=data,
            store_ids=parse_id_list(data.get("store_ids")),
        )
        return jsonify(user_service.user_detail(user)), 200
    except (user_service.UserServiceError, PasswordValidationError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to update user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.delete("/<int:user_id>")
@portal_route
def delete_user(user_id: int):
    user = user_service.get_store_user(g.store, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    try:
        user_service.delete_store_user(actor=g.current_user, user=user)
        current_app.logger.info("User %s deleted by user %s", user_id, g.current_user.id)
        return jsonify({"message": "User deleted"}), 200
    except user_service.UserServiceError as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to delete user")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.get("/<int:user_id>/assignments")
@portal_route
def get_user_assignments(user_id: int):
    user = user_service.get_store_user(g.store, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404
    return jsonify({
        "user_id": user.id,
        "store_ids": assignment_service.get_assigned_store_ids(user.id),
    }), 200


@users_bp.put("/<int:user_id>/assignments")
@portal_route
def replace_user_assignments(user_id: int):
    """Replace the user's store list with exactly the submitted ids (first is primary)."""
    user = user_service.get_store_user(g.store, user_id)
    if not user:
        return jsonify({"error": "User not found"}), 404

    data = request.get_json(silent=True) or {}
    try:
        store_ids = parse_id_list(data.get("store_ids"))
        assignment_service.validate_assignment_scope(g.current_user, user.id, store_ids)
        assignment_service.replace_user_assignments(user.id, store_ids, assigned_by=g.current_user.id)
        return jsonify({
            "user_id": user.id,
            "store_ids": assignment_service.get_assigned_store_ids(user.id),
        }), 200
    except (assignment_service.AssignmentError, ValidationError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to update store assignments")
        return jsonify({"error": "Internal server error"}), 500


@users_bp.post("/assignment-editor")
@portal_route
def assignment_editor():
    """
    Stateless dual-list editor.

    Body:
    {
        "selected_store_ids": [3, 1],
        "move": {"to": "assigned" | "available", "store_ids": [5]},   // optional
        "available_filter": "main",                                     // optional
        "assigned_filter": ""                                           // optional
    }

    "user_id" names the user being edited. Their current assignments seed the
    selection when "selected_store_ids" is missing, and only stores they
    already hold may appear beyond the caller's own stores. Without it the
    current store seeds the selection.
    """
    data = request.get_json(silent=True) or {}
    try:
        target_user_id = None
        if data.get("user_id") is not None:
            user = user_service.get_store_user(g.store, int(data["user_id"]))
            if not user:
                return jsonify({"error": "User not found"}), 404
            target_user_id = user.id

        if "selected_store_ids" in data:
            selected = parse_id_list(data.get("selected_store_ids"), "selected_store_ids")
        elif target_user_id is not None:
            selected = assignment_service.get_assigned_store_ids(target_user_id)
        else:
            selected = [g.store.id]

        move = data.get("move") or {}
        if move:
            batch = parse_id_list(move.get("store_ids"))
            if move.get("to") == "assigned":
                selected = assignment_service.move_to_assigned(selected, batch)
            elif move.get("to") == "available":
                selected = assignment_service.move_to_available(selected, batch)
            else:
                return jsonify({"error": "move.to must be 'assigned' or 'available'"}), 400

        editor = assignment_service.build_editor(
            g.current_user,
            selected,
            target_user_id=target_user_id,
            available_filter=str(data.get("available_filter") or ""),
            assigned_filter=str(data.get("assigned_filter") or ""),
        )
        return jsonify(editor.to_dict()), 200
    except (ValidationError, TypeError, ValueError) as exc:
        return jsonify({"error": str(exc)}), 400
    except Exception:
        current_app.logger.exception("Failed to build assignment editor")
        return jsonify({"error": "Internal server error", "retryable": True}), 500
