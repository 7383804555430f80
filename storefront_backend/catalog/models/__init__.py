# catalog/models/__init__.py

from .product import Product
from .product_variation import ProductVariation

__all__ = [
    "Product",
    "ProductVariation",
]
