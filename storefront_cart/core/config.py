"""Cart Engine Configuration"""

from typing import Literal, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment"""

    model_config = SettingsConfigDict(
        env_prefix="CART_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Storefront Cart"
    debug: bool = True
    host: str = "0.0.0.0"
    port: int = 8002
    log_level: str = "INFO"

    # Cart limits
    max_items: int = 50
    max_qty_per_item: int = 99

    # Pricing (minor currency units)
    tax_rate: float = 0.19  # 19% IVA
    free_shipping_threshold: float = 150000
    shipping_fee: float = 15000

    # Session (None keeps persisted carts indefinitely)
    session_timeout_minutes: Optional[int] = None

    # Persistence
    storage_backend: Literal["memory", "file"] = "memory"
    storage_path: Optional[str] = None
    storage_key: str = "storefront-cart"

    def shipping_for(self, subtotal: float) -> float:
        """Flat shipping fee, waived once the subtotal reaches the threshold"""
        return 0 if subtotal >= self.free_shipping_threshold else self.shipping_fee


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()
