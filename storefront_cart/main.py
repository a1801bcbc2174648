"""
Storefront Cart Application

Serves the shopping-cart engine to the storefront UI: cart contents,
totals, coupons and cart persistence across sessions.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from dotenv import load_dotenv

# Load environment variables before settings are read
load_dotenv()

from .core.config import get_settings
from .routes import cart_router, coupons_router
from .services.store import CartRegistry

settings = get_settings()

# Configure logging
logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events"""
    logger.info(f"{settings.app_name} starting up...")
    logger.info(f"Cart storage: {settings.storage_backend}")
    # Each cart is restored from storage before its first command
    app.state.cart_registry = CartRegistry(settings=settings)
    yield
    logger.info(f"{settings.app_name} shutting down...")


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    description="Shopping-cart engine for the storefront",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # In production, restrict this
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Cart-Id"],
)

# Include API routers
app.include_router(cart_router)
app.include_router(coupons_router)


@app.get("/")
async def home():
    """Service index"""
    return {
        "message": "Storefront Cart API",
        "docs": "/docs",
        "endpoints": {
            "cart": "/api/cart",
            "coupons": "/api/coupons",
        },
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy", "service": "storefront-cart"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "storefront_cart.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )
