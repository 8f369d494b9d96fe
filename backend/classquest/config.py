"""Application settings and validation."""

import os


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == "true"


class Settings:
    ENV: str
    DATABASE_URL: str
    JWT_SECRET: str
    JWT_ALGORITHM: str
    JWT_EXPIRE_HOURS: int
    ALLOW_INSECURE_JWT: bool
    ALLOW_DEV_CORS: bool
    TRUST_USER_HEADER: bool
    ADMIN_EMAILS: set
    MAX_HEALTH: int
    MAX_ENERGY: int
    LOGIN_RATE_LIMIT: int
    LOGIN_RATE_WINDOW_SECONDS: int
    GEMINI_API_KEY: str
    GEMINI_MODEL: str
    LOG_LEVEL: str

    def __init__(self):
        self.ENV = os.getenv("ENV", "dev").lower()
        self.DATABASE_URL = os.getenv("DATABASE_URL", "")
        self.JWT_SECRET = os.getenv("JWT_SECRET", "change_me_for_prod")
        self.JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
        self.JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))
        self.ALLOW_INSECURE_JWT = _flag("ALLOW_INSECURE_JWT", "false")
        self.ALLOW_DEV_CORS = _flag("ALLOW_DEV_CORS", "true")
        # only enable behind a gateway that strips client supplied copies of the header
        self.TRUST_USER_HEADER = _flag("TRUST_USER_HEADER", "false")
        self.ADMIN_EMAILS = {
            e.strip().lower() for e in os.getenv("ADMIN_EMAILS", "").split(",") if e.strip()
        }
        self.MAX_HEALTH = int(os.getenv("MAX_HEALTH", "100"))
        self.MAX_ENERGY = int(os.getenv("MAX_ENERGY", "100"))
        self.LOGIN_RATE_LIMIT = int(os.getenv("LOGIN_RATE_LIMIT", "10"))
        self.LOGIN_RATE_WINDOW_SECONDS = int(os.getenv("LOGIN_RATE_WINDOW_SECONDS", "60"))
        self.GEMINI_API_KEY = os.getenv("GEMINI_API_KEY", "")
        self.GEMINI_MODEL = os.getenv("GEMINI_MODEL", "gemini-2.5-flash")
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        self._validate()

    def _validate(self):
        if self.ENV != "dev" and not self.ALLOW_INSECURE_JWT and self.JWT_SECRET == "change_me_for_prod":
            raise RuntimeError("JWT_SECRET must be set to a non-default value in non-dev environments")
        if self.MAX_HEALTH <= 0 or self.MAX_ENERGY <= 0:
            raise RuntimeError("MAX_HEALTH and MAX_ENERGY must be positive")


settings = Settings()
