from datetime import timedelta
from pathlib import Path

from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent.parent.parent

# Editor formats
FORMAT_MOODLE = 0
FORMAT_HTML = 1
FORMAT_PLAIN = 2
FORMAT_MARKDOWN = 4


class Settings(BaseSettings):
    DATABASE_URL: str = f"sqlite:///{BASE_DIR}/mod_assign.db"
    # DEV ONLY default. Set MOD_ASSIGN_SECRET_KEY in production.
    SECRET_KEY: str = "change-me-in-production"
    TOKEN_MINUTES: int = 60
    DEFAULT_FORMAT: int = FORMAT_HTML
    BASE_URL: str = "http://localhost:8000"

    class Config:
        env_prefix = "MOD_ASSIGN_"
        env_file = ".env"

    @property
    def access_token_expire(self) -> timedelta:
        return timedelta(minutes=self.TOKEN_MINUTES)


settings = Settings()

ALGORITHM = "HS256"

# Grading table
DEFAULT_PER_PAGE = 10
MAX_PER_PAGE = 100

# Audit log info column is limited to 255 chars
LOG_INFO_MAX_LENGTH = 255

# Preview length used for comments/feedback in the grading table
SHORTEN_TEXT_LENGTH = 100

# File submission defaults (per assignment overridable via plugin config)
DEFAULT_MAX_FILES = 1
DEFAULT_MAX_SUBMISSION_BYTES = 1024 * 1024
