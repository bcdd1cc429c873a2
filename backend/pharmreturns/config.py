from decimal import Decimal

from pydantic import model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    # Database (only used when catalog_backend == "database")
    database_url: str = "sqlite+aiosqlite:///./pharmreturns.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Catalog
    catalog_backend: str = "memory"  # "memory" | "database"

    # App
    environment: str = "development"
    log_level: str = "INFO"
    log_format: str = "text"  # "text" | "json"

    # Security
    allowed_origins: str = "http://localhost:3000,http://localhost:80,http://localhost"

    # Fee schedule
    service_fee_rate: Decimal = Decimal("0.03")
    service_fee_min: Decimal = Decimal("25")
    service_fee_max: Decimal = Decimal("500")
    transport_base_fee: Decimal = Decimal("15")
    transport_per_item_fee: Decimal = Decimal("0.50")

    model_config = {"env_file": ".env", "extra": "ignore"}

    @model_validator(mode="after")
    def _validate_settings(self):
        if self.catalog_backend not in ("memory", "database"):
            raise ValueError(
                f"CATALOG_BACKEND must be 'memory' or 'database', got {self.catalog_backend!r}"
            )
        if self.service_fee_min > self.service_fee_max:
            raise ValueError("SERVICE_FEE_MIN must not exceed SERVICE_FEE_MAX")
        if self.environment == "production" and self.catalog_backend == "database":
            if self.database_url.startswith("sqlite"):
                raise ValueError(
                    "Production must not use a SQLite catalog database"
                )
        return self


settings = Settings()
