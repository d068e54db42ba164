from .tenancy import Organization
from .catalog import Category, Subcategory
from .inventory import Product, InventoryAdjustment

__all__ = [
    'Organization',
    'Category', 'Subcategory',
    'Product', 'InventoryAdjustment',
]
