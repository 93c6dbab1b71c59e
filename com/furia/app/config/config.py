import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super(Config, cls).__new__(cls)
            # Application settings
            cls._instance.app_env = os.getenv("APP_ENV", "production").strip().lower()
            cls._instance.log_level = os.getenv("LOG_LEVEL", "INFO").upper()
            cls._instance.allowed_origins = [
                origin.strip()
                for origin in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000").split(",")
                if origin.strip()
            ]

            # OpenAI API settings
            cls._instance.openai_api_key = os.getenv("OPENAI_API_KEY")
            cls._instance.openai_model = os.getenv("OPENAI_MODEL", "gpt-4o-mini")
            cls._instance.classifier_timeout = float(os.getenv("CLASSIFIER_TIMEOUT", "15"))

            # Upload limits
            cls._instance.max_image_size = int(os.getenv("MAX_IMAGE_SIZE", str(5 * 1024 * 1024)))

            # MongoDB settings
            cls._instance.mongodb_uri = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
            cls._instance.mongodb_db = os.getenv("MONGODB_DB", "furia")
            cls._instance.mongodb_users_collection = os.getenv("MONGODB_USERS_COLLECTION", "users")
            cls._instance.mongodb_profiles_collection = os.getenv("MONGODB_PROFILES_COLLECTION", "profiles")
            # Transactions need a replica set; a standalone server (such as the
            # default localhost URI) rejects them, so set MONGODB_TRANSACTIONS=false there
            cls._instance.mongodb_transactions = _env_flag("MONGODB_TRANSACTIONS", "true")

            # JWT settings
            cls._instance.jwt_secret = os.getenv("JWT_SECRET")
            cls._instance.jwt_algorithm = os.getenv("JWT_ALGORITHM", "HS256")

        return cls._instance

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"
