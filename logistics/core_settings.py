from pydantic_settings import BaseSettings
from functools import lru_cache
from typing import Literal, Optional

ParentCheck = Literal["strict", "permissive"]

class Settings(BaseSettings):
    POSTGRES_HOST: str = "postgres"
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "logistics"
    POSTGRES_USER: str = "logistics"
    POSTGRES_PASSWORD: str = "logistics"
    # Takes precedence over the POSTGRES_* parts when set (e.g. sqlite:// in tests)
    DATABASE_URL: Optional[str] = None
    # Optional cache; checked by /health/ready only when set
    REDIS_URL: Optional[str] = None

    SERVICE_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    RUN_MIGRATIONS: bool = False

    # Whether a missing parent order rejects the payment / shipment
    PAYMENT_ORDER_CHECK: ParentCheck = "permissive"
    SHIPMENT_ORDER_CHECK: ParentCheck = "strict"

    class Config:
        env_file = ".env"

    @property
    def database_url(self) -> str:
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"postgresql+psycopg2://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"

@lru_cache
def get_settings() -> Settings:
    return Settings()
