from storefront.models.user import User, UserRole
from storefront.models.category import Category
from storefront.models.product import Product, ProductImage
from storefront.models.order import Order, OrderItem, OrderStatus
