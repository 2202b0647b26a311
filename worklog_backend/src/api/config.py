import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_SESSION_SECRET = "dev-session-secret-change-me"

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./worklog.db")
# Deadline applied to every store round-trip
DB_TIMEOUT_SECONDS = float(os.getenv("DB_TIMEOUT_SECONDS", "5"))

# Sessions
SESSION_SECRET = os.getenv("SESSION_SECRET", DEFAULT_SESSION_SECRET)
SESSION_COOKIE_NAME = os.getenv("SESSION_COOKIE_NAME", "worklog_session")
SESSION_LIFETIME_DAYS = int(os.getenv("SESSION_LIFETIME_DAYS", "7"))
SESSION_COOKIE_SECURE = os.getenv("SESSION_COOKIE_SECURE", "false").lower() in ("1", "true", "yes")

# Password hashing cost factor
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# HTTP
API_PREFIX = os.getenv("API_PREFIX", "/api")
FRONTEND_ORIGIN = os.getenv("FRONTEND_ORIGIN", "http://localhost:3000")
PORT = int(os.getenv("PORT", "8080"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
