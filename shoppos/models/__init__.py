from shoppos.models.inventory import Customer, InventoryItem, Shop
from shoppos.models.sales import Sale, SaleItem
from shoppos.models.user import User, UserRole

__all__ = [
    "Customer",
    "InventoryItem",
    "Sale",
    "SaleItem",
    "Shop",
    "User",
    "UserRole",
]
