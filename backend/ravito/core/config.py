from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    env: str = "dev"
    log_level: str = "INFO"
    database_url: str = "postgresql+psycopg2://ravito:ravito@db:5432/ravito"
    backend_cors_origins: str = "http://localhost:5173,http://localhost:8081"

    # Auth
    secret_key: str = "ravito-dev-secret-change-me"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 30
    refresh_token_expire_minutes: int = 60 * 24 * 30
    bcrypt_rounds: int = 12

    # Marketplace commissions, in percent of the accepted offer
    client_commission_pct: float = 8
    supplier_commission_pct: float = 2

    # Reference data and first admin, loaded at startup in dev or with FORCE_SEED
    force_seed: bool = False
    ravito_admin_email: str = "admin@ravito.ci"
    ravito_admin_password: str = "Admin12345"

    @property
    def cors_origins(self) -> List[str]:
        """Parse CORS origins from a comma-separated string"""
        return [origin.strip() for origin in self.backend_cors_origins.split(",") if origin.strip()]

    @property
    def is_dev(self) -> bool:
        return self.env in {"dev", "test"}

    @property
    def should_seed(self) -> bool:
        return self.env == "dev" or self.force_seed

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
