from functools import lru_cache
from dotenv import load_dotenv
import os

# Load environment variables from .env file
load_dotenv()


class Settings:
    """Process configuration, read once from the environment"""

    def __init__(self):
        self.port = int(os.getenv("PORT", 8080))
        self.database_url = os.getenv("DATABASE_URL")

        # Session tokens
        self.secret_key = os.getenv("SECRET_KEY")
        self.algorithm = os.getenv("ALGORITHM", "HS256")
        self.token_expire_days = int(os.getenv("TOKEN_EXPIRE_DAYS", 30))

        # Blob store (service account file + Drive folder acting as the container)
        self.storage_credentials = os.getenv("STORAGE_CREDENTIALS")
        self.storage_container = os.getenv("STORAGE_CONTAINER")
        self.upload_timeout_seconds = int(os.getenv("UPLOAD_TIMEOUT_SECONDS", 5 * 60))

        self.environment = os.getenv("ENVIRONMENT", "development")
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_dir = os.getenv("LOG_DIR")

        if not self.secret_key:
            raise ValueError("SECRET_KEY environment variable is required")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache()
def get_settings() -> Settings:
    return Settings()
