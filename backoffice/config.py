"""Application configuration"""
from typing import List, Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = "sqlite:///./backoffice.db"
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # Identity provider (ID token verification)
    IDENTITY_PUBLIC_KEY: Optional[str] = None    # PEM; the provider's signing key
    IDENTITY_PRIVATE_KEY: Optional[str] = None   # PEM; only for locally issued dev tokens
    IDENTITY_ALGORITHM: str = "RS256"
    IDENTITY_ISSUER: Optional[str] = None
    IDENTITY_AUDIENCE: Optional[str] = None
    IDENTITY_PROFILE_URL: Optional[str] = None   # GET {url}/{subject_id} -> {"email": ...}
    IDENTITY_PROFILE_TIMEOUT: int = 5            # seconds
    DEV_TOKEN_EXPIRE_SECONDS: int = 3600

    # Bootstrap
    OWNER_EMAIL: str = ""

    # Audit log
    AUDIT_PAGE_SIZE_DEFAULT: int = 50
    AUDIT_PAGE_SIZE_MAX: int = 100

    # Server
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"  # json or text

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_DEFAULT: List[str] = ["100/minute", "1000/hour"]
    RATE_LIMIT_SETUP: str = "5/minute"
    RATE_LIMIT_STORAGE_URI: str = "memory://"  # Use redis:// for production

    # Monitoring
    METRICS_ENABLED: bool = True
    METRICS_PATH: str = "/metrics"

    # Security
    TRUST_PROXY_HEADERS: bool = False  # Set True if behind reverse proxy

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        """Parse CORS origins string into list"""
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.LOG_LEVEL == "WARNING" or self.LOG_LEVEL == "ERROR"


settings = Settings()
