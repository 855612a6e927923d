from .users import User, Address
from .catalog import Category, Product, Offer
from .orders import CartItem, Order, OrderItem, ORDER_STATUSES
from .inventory import Inventory, StockTransaction, TRANSACTION_TYPES
from .pricing import PricingTier, CustomerPricing, UserPricingTier

__all__ = [
    'User', 'Address',
    'Category', 'Product', 'Offer',
    'CartItem', 'Order', 'OrderItem', 'ORDER_STATUSES',
    'Inventory', 'StockTransaction', 'TRANSACTION_TYPES',
    'PricingTier', 'CustomerPricing', 'UserPricingTier',
]
