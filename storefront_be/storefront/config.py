import os
import logging
from functools import lru_cache

from dotenv import load_dotenv, find_dotenv

logger = logging.getLogger(__name__)

# Prefer loading environment variables from a .env file when one is present
_env_path = find_dotenv(usecwd=True)
if _env_path:
    load_dotenv(_env_path)

DEFAULT_JWT_SECRET = "change_me_secret"


class Settings:
    def __init__(self):
        self.JWT_SECRET: str = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
        self.JWT_ALGORITHM: str = os.getenv("JWT_ALGORITHM", "HS256")
        # Tokens are stateless and live for one hour
        self.ACCESS_TOKEN_EXPIRE_MINUTES: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
        self.DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./storefront.db")
        self.PORT: int = int(os.getenv("PORT", "8000"))
        # "development" exposes internal error text in 500 responses
        self.ENVIRONMENT: str = os.getenv("ENVIRONMENT", "production").lower()
        self.BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

        if self.JWT_SECRET == DEFAULT_JWT_SECRET:
            logger.warning("JWT_SECRET is not set; using an insecure development default")

    @property
    def expose_errors(self) -> bool:
        return self.ENVIRONMENT == "development"


@lru_cache
def get_settings():
    return Settings()
