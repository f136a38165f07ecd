# Overview: Visible-store scope and current-store selection for a signed-in portal user.

from __future__ import annotations

from dataclasses import dataclass, field

from ..extensions import db
from ..models import Store, User
from ..models.auth import ROLE_SUPER_ADMIN
from ..models.tenancy import STORE_STATUS_ACTIVE
from .access_service import owned_store_ids, assigned_store_ids


class StoreSelectionError(Exception):
    """Raised when selecting a store the user cannot see."""
    pass


def visible_store_ids(user: User) -> set[int] | None:
    """
    Store ids a user may see before the active-status filter.

    None means "every store" (super admins).
    """
    if user.role == ROLE_SUPER_ADMIN:
        return None
    return owned_store_ids(user.id) | assigned_store_ids(user.id)


def visible_stores(user: User) -> list[Store]:
    """
    super_admin -> every active store.
    everyone else -> owned stores unioned with assigned stores, active only.
    Ordered by name.
    """
    query = db.session.query(Store).filter(Store.status == STORE_STATUS_ACTIVE)

    ids = visible_store_ids(user)
    if ids is not None:
        if not ids:
            return []
        query = query.filter(Store.id.in_(ids))

    return query.order_by(Store.name.asc(), Store.id.asc()).all()


def resolve_selection(stores: list[Store], stored_id: int | None) -> Store | None:
    """
    Fallback order: the stored id if still visible, else the first visible
    store, else nothing.
    """
    if stored_id is not None:
        for store in stores:
            if store.id == stored_id:
                return store
    return stores[0] if stores else None


@dataclass
class StoreContext:
    """
    The shared "current user + current store" state every screen reads.

    Transitions (select, clear, refresh) go through this object only; the
    caller persists `selected_id` wherever it keeps the user's choice.
    """
    user: User
    stores: list[Store] = field(default_factory=list)
    selected: Store | None = None

    @classmethod
    def load(cls, user: User, stored_id: int | None = None) -> "StoreContext":
        stores = visible_stores(user)
        return cls(user=user, stores=stores, selected=resolve_selection(stores, stored_id))

    @property
    def selected_id(self) -> int | None:
        return self.selected.id if self.selected else None

    @property
    def store_ids(self) -> list[int]:
        return [store.id for store in self.stores]

    def find(self, store_id: int) -> Store | None:
        for store in self.stores:
            if store.id == store_id:
                return store
        return None

    def select(self, store_id: int | None) -> Store | None:
        if store_id is None:
            return self.clear()
        store = self.find(store_id)
        if store is None:
            raise StoreSelectionError("Store not available")
        self.selected = store
        return store

    def clear(self) -> None:
        self.selected = None
        return None

    def refresh(self) -> Store | None:
        """Reload the visible set, keeping the current selection when still visible."""
        self.stores = visible_stores(self.user)
        self.selected = resolve_selection(self.stores, self.selected_id)
        return self.selected

    def to_dict(self) -> dict:
        return {
            "stores": [store.to_dict() for store in self.stores],
            "selected_store_id": self.selected_id,
            "selected_store": self.selected.to_dict() if self.selected else None,
        }
