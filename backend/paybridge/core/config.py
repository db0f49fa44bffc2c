from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    razorpay_key_id: str
    razorpay_key_secret: str
    razorpay_webhook_secret: str
    backend_url: str
    booking_guest_user: str = "guestuser"
    booking_guest_password: str
    booking_timeout: float = 10.0
    booking_company_code: str = "1"
    booking_location_code: int = 1
    booking_division_code: int = 1
    order_currency: str = "INR"
    database_url: str = "sqlite:///./paybridge.db"
    webhook_dedupe: bool = False
    allowed_origins: str = "*"
    max_body_size: int = 1_048_576  # 1 MiB
    log_level: str = "INFO"
    port: int = 9010

    model_config = {"env_file": ".env", "extra": "ignore"}

    @property
    def booking_base_url(self) -> str:
        # BACKEND_URL is configured both with and without a trailing slash
        return self.backend_url.rstrip("/")


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]
