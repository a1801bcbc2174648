"""Storefront shopping-cart engine"""

__version__ = "1.0.0"
