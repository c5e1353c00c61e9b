"""Application configuration."""

from decimal import Decimal
from os import getenv

from pydantic import BaseModel


class Settings(BaseModel):
    """Runtime settings for the application."""

    app_name: str = "coffee-orders API"
    app_env: str = getenv("APP_ENV", "dev")
    debug: bool = getenv("DEBUG", "0") == "1"
    log_level: str = getenv("LOG_LEVEL", "INFO")
    database_url: str = getenv("DATABASE_URL", "sqlite:///./coffee_orders.db")
    sqlite_busy_timeout: float = float(getenv("SQLITE_BUSY_TIMEOUT", "15"))
    jwt_secret_key: str = getenv("JWT_SECRET_KEY", "dev-only-change-me-to-a-long-random-secret")
    jwt_algorithm: str = getenv("JWT_ALGORITHM", "HS256")
    jwt_expire_minutes: int = int(getenv("JWT_EXPIRE_MINUTES", "60"))
    admin_email: str = getenv("ADMIN_EMAIL", "admin@coffeeapp.local")
    admin_password: str = getenv("ADMIN_PASSWORD", "admin123")
    order_rate_limit_max_orders: int = int(getenv("ORDER_RATE_LIMIT_MAX_ORDERS", "3"))
    order_rate_limit_window_minutes: int = int(getenv("ORDER_RATE_LIMIT_WINDOW_MINUTES", "60"))
    duplicate_order_ttl_seconds: float = float(getenv("DUPLICATE_ORDER_TTL_SECONDS", "15"))
    price_tolerance: Decimal = Decimal(getenv("PRICE_TOLERANCE", "0.01"))
    low_stock_multiplier: Decimal = Decimal(getenv("LOW_STOCK_MULTIPLIER", "2.2"))


settings: Settings = Settings()
