from typing import List, Optional
from pydantic_settings import BaseSettings
from urllib.parse import quote_plus

class Settings(BaseSettings):
    ENV: str = "local"
    LOG_LEVEL: str = "INFO"

    postgres_user: str = "postgres"
    postgres_password: str = ""
    postgres_db: str = "storefront"
    postgres_host: str = "localhost"
    postgres_port: str = "5432"

    # full SQLAlchemy URL, wins over the postgres parts (sqlite for tests)
    database_url_override: Optional[str] = None

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    base_url: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"
    CORS_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # store
    STORE_NAME: str = "Jua-Kali Muli Traders"
    STORE_CURRENCY: str = "KES"
    SHIPPING_COST: float = 500
    ORDER_NUMBER_PREFIX: str = "KZ"
    LOW_STOCK_THRESHOLD: int = 5

    # m-pesa (daraja)
    MPESA_CONSUMER_KEY: str = ""
    MPESA_CONSUMER_SECRET: str = ""
    MPESA_BUSINESS_SHORTCODE: str = ""
    MPESA_PASSKEY: str = ""
    MPESA_ENVIRONMENT: str = "sandbox"
    MPESA_TIMEOUT_SECONDS: int = 30

    # paypal
    PAYPAL_CLIENT_ID: str = ""
    PAYPAL_CLIENT_SECRET: str = ""
    PAYPAL_MODE: str = "sandbox"
    PAYPAL_WEBHOOK_ID: Optional[str] = None
    PAYPAL_CURRENCY: str = "USD"
    PAYPAL_EXCHANGE_RATE: float = 130
    PAYPAL_TIMEOUT_SECONDS: int = 30

    # what a failed gateway payment does to its order
    MPESA_FAILURE_CANCELS_ORDER: bool = False
    PAYPAL_DENIAL_CANCELS_ORDER: bool = True

    @property
    def database_url(self):
        if self.database_url_override:
            return self.database_url_override

        encoded_password = quote_plus(self.postgres_password)
        return (
            f"postgresql+psycopg2://{self.postgres_user}:"
            f"{encoded_password}@{self.postgres_host}:"
            f"{self.postgres_port}/{self.postgres_db}"
        )

    @property
    def mpesa_callback_url(self) -> str:
        return f"{self.base_url}/api/payments/mpesa/callback"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"

settings = Settings()
