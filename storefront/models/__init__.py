from .sequences import Counter
from .accounts import Company, Employee, User
from .catalog import Catalog, Product, catalog_products
from .offers import Offer
from .coupons import Coupon
from .carts import Cart, CartLine
from .receipts import Receipt
from .reviews import Review

__all__ = [
    'Counter',
    'Company', 'Employee', 'User',
    'Product', 'Catalog', 'catalog_products',
    'Offer',
    'Coupon',
    'Cart', 'CartLine',
    'Receipt',
    'Review',
]
