import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_PORT = 8000
DEFAULT_ENVIRONMENT = "development"
DEFAULT_DATABASE_NAME = "videotube"
DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 24  # 1 day
DEFAULT_REFRESH_TOKEN_EXPIRE_MINUTES = 60 * 24 * 10  # 10 days

PORT = int(os.getenv("PORT", DEFAULT_PORT))
ENVIRONMENT = os.getenv("ENVIRONMENT", DEFAULT_ENVIRONMENT)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
ALLOWED_ORIGINS = [origin.strip() for origin in os.getenv("ALLOWED_ORIGINS", "*").split(",")]

DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", DEFAULT_DATABASE_NAME)

ACCESS_TOKEN_SECRET = os.getenv("ACCESS_TOKEN_SECRET")
REFRESH_TOKEN_SECRET = os.getenv("REFRESH_TOKEN_SECRET")
if not all([ACCESS_TOKEN_SECRET, REFRESH_TOKEN_SECRET]):
    raise RuntimeError("Token secret environment variable is missing! Set it in your .env file.")

TOKEN_ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", DEFAULT_ACCESS_TOKEN_EXPIRE_MINUTES))
REFRESH_TOKEN_EXPIRE_MINUTES = int(os.getenv("REFRESH_TOKEN_EXPIRE_MINUTES", DEFAULT_REFRESH_TOKEN_EXPIRE_MINUTES))

MEDIA_DIR = os.getenv("MEDIA_DIR", os.path.join(os.getcwd(), "uploads"))
MEDIA_URL_PREFIX = os.getenv("MEDIA_URL_PREFIX", "/media")

DEFAULT_PAGE_SIZE = int(os.getenv("DEFAULT_PAGE_SIZE", 10))
MAX_PAGE_SIZE = int(os.getenv("MAX_PAGE_SIZE", 100))
