from pydantic_settings import BaseSettings
from typing import Optional, Tuple

class Settings(BaseSettings):
    # these must be set in the environment
    database_url: str
    jwt_secret: str

    jwt_expire_days: int = 30

    # comma separated list of dashboard / admin origins
    cors_origins: str = ""

    shopify_api_key: str = ""
    shopify_api_secret: str = ""
    shopify_api_scopes: str = "read_products,read_orders,read_customers"
    shopify_api_version: str = "2025-10"

    # n8n webhooks
    n8n_webhook_url: str = ""
    n8n_chat_webhook: str = ""
    n8n_customercheck_webhook: str = ""
    n8n_analysis_webhook_url: str = ""
    n8n_chat_timeout: float = 60.0
    n8n_sync_timeout: float = 5.0
    n8n_analysis_timeout: float = 60.0
    analysis_batch_delay: float = 2.0

    pending_store_ttl_minutes: int = 60

    backend_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:5173"
    app_name: str = "Quell AI Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: Optional[str] = "app.log"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False

    @property
    def allowed_origins(self) -> Tuple[str, ...]:
        return tuple(
            origin.strip().rstrip("/")
            for origin in self.cors_origins.split(",")
            if origin.strip()
        )

settings = Settings()
