from .tenancy import Store, UserStoreAssignment
from .auth import User, SessionToken
from .catalog import Service, InventoryItem
from .sales import Customer, Order, OrderItem

__all__ = [
    'Store', 'UserStoreAssignment',
    'User', 'SessionToken',
    'Service', 'InventoryItem',
    'Customer', 'Order', 'OrderItem',
]
