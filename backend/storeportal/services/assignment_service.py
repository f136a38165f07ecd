# Overview: Service-layer operations for user/store assignments and the dual-list assignment editor.

"""
User/store assignment editing.

The editor is a dual list: "available" stores the editor can hand out and
"assigned" stores currently selected for the user being edited. A user may
already hold stores the editor cannot see; those are fetched by id so they
render as assigned, but never appear as available.

Saving replaces the user's assignment rows with exactly the submitted list
(first entry primary). Delete and insert run in one transaction.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import Store, User, UserStoreAssignment
from ..models.tenancy import STORE_STATUS_ACTIVE
from .store_context import visible_stores


DEFAULT_ASSIGNMENT_ROLE = "employee"


class AssignmentError(Exception):
    """Raised when an assignment save is rejected or fails."""
    pass


@dataclass
class AssignmentEditor:
    available: list[Store]
    assigned: list[Store]
    selected_store_ids: list[int]

    def to_dict(self) -> dict:
        return {
            "available": [store.to_summary_dict() for store in self.available],
            "assigned": [store.to_summary_dict() for store in self.assigned],
            "selected_store_ids": list(self.selected_store_ids),
            "available_count": len(self.available),
            "assigned_count": len(self.assigned),
        }


def get_assigned_store_ids(user_id: int) -> list[int]:
    """Current assignment ids, primary first."""
    rows = (
        db.session.query(UserStoreAssignment.store_id)
        .filter_by(user_id=user_id)
        .order_by(UserStoreAssignment.is_primary.desc(), UserStoreAssignment.id.asc())
        .all()
    )
    return [row[0] for row in rows]


def _matches(store: Store, needle: str) -> bool:
    return needle.lower() in (store.name or "").lower()


def build_editor(
    editor: User,
    selected_store_ids: list[int],
    *,
    target_user_id: int | None = None,
    available_filter: str = "",
    assigned_filter: str = "",
) -> AssignmentEditor:
    """
    Build both panes for `editor` given the ids currently selected for the
    user being edited (`target_user_id`, None for a new user).

    Ids outside the editor's scope only survive when the target user already
    holds them; anything else is dropped from the selection.
    """
    editor_stores = visible_stores(editor)
    editor_ids = {store.id for store in editor_stores}
    held_ids = set(get_assigned_store_ids(target_user_id)) if target_user_id is not None else set()

    selected_store_ids = [
        store_id for store_id in selected_store_ids
        if store_id in editor_ids or store_id in held_ids
    ]
    missing_ids = [store_id for store_id in selected_store_ids if store_id not in editor_ids]
    outside_stores: list[Store] = []
    if missing_ids:
        outside_stores = (
            db.session.query(Store)
            .filter(Store.id.in_(missing_ids), Store.status == STORE_STATUS_ACTIVE)
            .all()
        )

    known = sorted(editor_stores + outside_stores, key=lambda s: ((s.name or "").lower(), s.id))
    selected = set(selected_store_ids)

    available = [
        store for store in editor_stores
        if store.id not in selected and _matches(store, available_filter)
    ]
    assigned = [
        store for store in known
        if store.id in selected and _matches(store, assigned_filter)
    ]

    return AssignmentEditor(
        available=available,
        assigned=assigned,
        selected_store_ids=list(selected_store_ids),
    )


def move_to_assigned(selected_store_ids: list[int], store_ids: list[int]) -> list[int]:
    """Append the batch to the selection, keeping order and skipping duplicates."""
    result = list(selected_store_ids)
    for store_id in store_ids:
        if store_id not in result:
            result.append(store_id)
    return result


def move_to_available(selected_store_ids: list[int], store_ids: list[int]) -> list[int]:
    removing = set(store_ids)
    return [store_id for store_id in selected_store_ids if store_id not in removing]


def validate_assignment_scope(editor: User, target_user_id: int | None, store_ids: list[int]) -> None:
    """
    Submitted ids must be stores the editor can see, or stores the target
    user already holds (kept as-is from outside the editor's scope).
    """
    if not store_ids:
        raise AssignmentError("Please assign at least one store to the user")

    allowed = {store.id for store in visible_stores(editor)}
    if target_user_id is not None:
        allowed |= set(get_assigned_store_ids(target_user_id))

    outside = [store_id for store_id in store_ids if store_id not in allowed]
    if outside:
        raise AssignmentError("Cannot assign stores outside your access")


def stage_assignment_replacement(user_id: int, store_ids: list[int], assigned_by: int | None) -> list[UserStoreAssignment]:
    """
    Queue the delete + insert on the current session without committing, so
    callers can fold it into a larger save.
    """
    existing = {
        store.id for store in db.session.query(Store).filter(Store.id.in_(store_ids)).all()
    } if store_ids else set()
    unknown = [store_id for store_id in store_ids if store_id not in existing]
    if unknown:
        raise AssignmentError("Store not found")

    db.session.query(UserStoreAssignment).filter_by(user_id=user_id).delete(synchronize_session=False)

    rows = [
        UserStoreAssignment(
            user_id=user_id,
            store_id=store_id,
            role=DEFAULT_ASSIGNMENT_ROLE,
            is_primary=index == 0,
            assigned_by=assigned_by if assigned_by is not None else user_id,
        )
        for index, store_id in enumerate(store_ids)
    ]
    db.session.add_all(rows)
    return rows


def replace_user_assignments(user_id: int, store_ids: list[int], assigned_by: int | None = None) -> list[UserStoreAssignment]:
    """
    Make the user's assignments exactly `store_ids`, first one primary.

    Atomic: on any failure nothing changes and AssignmentError is raised.
    """
    if not store_ids:
        raise AssignmentError("Please assign at least one store to the user")

    try:
        rows = stage_assignment_replacement(user_id, store_ids, assigned_by)
        db.session.commit()
    except AssignmentError:
        db.session.rollback()
        raise
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise AssignmentError("Failed to update store assignments") from exc

    return rows
