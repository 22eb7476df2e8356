from app.models.user import User
from app.models.category import Category
from app.models.product_size import ProductSize
from app.models.product_image import ProductImage, ProductDetail
from app.models.product import Product
from app.models.order_item import OrderItem
from app.models.payment import Payment
from app.models.order import Order
from app.models.order_event import OrderEvent
from app.models.webhook_event import WebhookEvent
from app.models.address import Address
from app.models.wishlist import WishlistItem
from app.models.recently_viewed import RecentlyViewed
from app.models.review import ProductReview

# add ALL models here
