# Overview: Service-layer operations for the users screen; store-scoped listing and user saves.

from __future__ import annotations

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Store, User, UserStoreAssignment, SessionToken
from ..models.auth import ROLE_SUPER_ADMIN
from ..validation import ValidationError, require_text, optional_text
from . import auth_service
from .access_service import Capabilities
from .assignment_service import (
    AssignmentError,
    get_assigned_store_ids,
    stage_assignment_replacement,
    validate_assignment_scope,
)


class UserServiceError(Exception):
    """Raised when a user save is rejected."""
    pass


def store_user_ids(store: Store) -> set[int]:
    """Users tied to a store: assignment rows plus the store's owner and manager."""
    rows = db.session.query(UserStoreAssignment.user_id).filter_by(store_id=store.id).all()
    user_ids = {row[0] for row in rows if row[0]}
    if store.owner_id:
        user_ids.add(store.owner_id)
    if store.manager_id:
        user_ids.add(store.manager_id)
    return user_ids


def list_store_users(store: Store) -> list[User]:
    """Newest first; super admins are never listed."""
    user_ids = store_user_ids(store)
    if not user_ids:
        return []

    return (
        db.session.query(User)
        .filter(User.id.in_(user_ids), User.role != ROLE_SUPER_ADMIN)
        .order_by(User.created_at.desc(), User.id.desc())
        .all()
    )


def get_store_user(store: Store, user_id: int) -> User | None:
    if user_id not in store_user_ids(store):
        return None
    return db.session.query(User).filter(User.id == user_id, User.role != ROLE_SUPER_ADMIN).first()


def resolve_new_user_store_ids(current_store_id: int, store_ids: list[int]) -> list[int]:
    """
    New users always get the current store: an empty selection, or one that
    leaves out the current store, collapses to just the current store.
    """
    if not store_ids or current_store_id not in store_ids:
        return [current_store_id]
    return list(dict.fromkeys(store_ids))


def _check_role(capabilities: Capabilities, role: str | None) -> str:
    role = auth_service.validate_role(role)
    if not capabilities.can_assign_role(role):
        raise UserServiceError(f"You cannot assign the {role} role")
    return role


def create_store_user(
    *,
    actor: User,
    capabilities: Capabilities,
    current_store: Store,
    data: dict,
    store_ids: list[int],
) -> User:
    """
    Create a user and their store assignments in one commit.
    """
    if not all(
        str(data.get(key) or "").strip()
        for key in ("email", "password", "first_name", "last_name")
    ):
        raise ValidationError("Please fill in all required fields")

    role = _check_role(capabilities, data.get("role"))
    final_store_ids = resolve_new_user_store_ids(current_store.id, store_ids)

    try:
        validate_assignment_scope(actor, None, final_store_ids)
    except AssignmentError as exc:
        raise UserServiceError(str(exc)) from exc

    user = auth_service.build_user(
        email=data.get("email"),
        password=data.get("password"),
        first_name=data.get("first_name"),
        last_name=data.get("last_name"),
        phone=data.get("phone"),
        role=role,
        is_active=data.get("is_active", True) is not False,
    )

    return save_new_user(user, final_store_ids, assigned_by=actor.id)


def save_new_user(user: User, store_ids: list[int], assigned_by: int | None = None) -> User:
    """Insert a built user and its assignments in one commit; nothing is kept on failure."""
    try:
        db.session.add(user)
        db.session.flush()
        if store_ids:
            stage_assignment_replacement(user.id, store_ids, assigned_by)
        db.session.commit()
    except AssignmentError as exc:
        db.session.rollback()
        raise UserServiceError(str(exc)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UserServiceError("Failed to create user") from exc

    return user


def update_store_user(
    *,
    actor: User,
    capabilities: Capabilities,
    user: User,
    data: dict,
    store_ids: list[int],
) -> User:
    """
    Save profile fields, optional password reset and the full assignment
    list together. The assignment list replaces whatever was there.
    """
    first_name = require_text(data.get("first_name"), "Please fill in all required fields")
    last_name = require_text(data.get("last_name"), "Please fill in all required fields")

    role = _check_role(capabilities, data.get("role") or user.role)

    try:
        validate_assignment_scope(actor, user.id, store_ids)
    except AssignmentError as exc:
        raise UserServiceError(str(exc)) from exc

    password = str(data.get("password") or "").strip()

    try:
        if password:
            auth_service.set_password(user, password)

        user.first_name = first_name
        user.last_name = last_name
        user.phone = optional_text(data.get("phone"))
        user.role = role
        if "is_active" in data:
            user.is_active = data.get("is_active") is not False

        stage_assignment_replacement(user.id, store_ids, actor.id)
        db.session.commit()
    except auth_service.PasswordValidationError:
        db.session.rollback()
        raise
    except AssignmentError as exc:
        db.session.rollback()
        raise UserServiceError(str(exc)) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UserServiceError("Failed to update user") from exc

    return user


def delete_store_user(*, actor: User, user: User) -> None:
    """Remove a user with their assignments and sessions; owned stores lose their owner."""
    if user.id == actor.id:
        raise UserServiceError("You cannot delete your own account")

    try:
        db.session.query(UserStoreAssignment).filter_by(user_id=user.id).delete(synchronize_session=False)
        db.session.query(SessionToken).filter_by(user_id=user.id).delete(synchronize_session=False)
        db.session.query(Store).filter_by(owner_id=user.id).update({"owner_id": None}, synchronize_session=False)
        db.session.query(Store).filter_by(manager_id=user.id).update({"manager_id": None}, synchronize_session=False)
        db.session.query(UserStoreAssignment).filter_by(assigned_by=user.id).update(
            {"assigned_by": None}, synchronize_session=False
        )
        # Drop stale collections so the delete sees the rows removed above
        db.session.expire(user)
        db.session.delete(user)
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise UserServiceError("Failed to delete user") from exc


def user_detail(user: User) -> dict:
    payload = user.to_dict()
    payload["store_ids"] = get_assigned_store_ids(user.id)
    return payload
