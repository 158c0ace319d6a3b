"""Models package - exports all SQLAlchemy models."""
from backoffice.models.user import User
from backoffice.models.product import Product, PRODUCT_STATUSES
from backoffice.models.inventory import Inventory
from backoffice.models.sale import Sale
from backoffice.models.sale_item import SaleItem

__all__ = [
    'User',
    'Product', 'PRODUCT_STATUSES',
    'Inventory',
    'Sale', 'SaleItem',
]
