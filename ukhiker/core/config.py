# ukhiker/core/config.py
import os
from pathlib import Path
from typing import List
from dotenv import load_dotenv

# ================== ENV ==================

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / ".env")

def env(*names: str, default: str) -> str:
    """First non-blank value among ``names``."""
    for n in names:
        v = os.environ.get(n, "").strip()
        if v:
            return v
    return default

APP_ENV = env("APP_ENV", "NODE_ENV", default="production").lower()

def is_development() -> bool:
    return APP_ENV == "development"

# ================== JWT ==================

JWT_SECRET = os.environ.get("JWT_SECRET", "default_secret_key")
JWT_ALGORITHM = "HS256"
# 7 days
JWT_EXPIRATION_HOURS = int(os.environ.get("JWT_EXPIRATION_HOURS", "168"))

# bcrypt cost factor, never below 10
BCRYPT_ROUNDS = max(10, int(os.environ.get("BCRYPT_ROUNDS", "10")))

# ================== STRIPE ==================

STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY", "").strip()
STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET", "").strip()
CHECKOUT_CURRENCY = os.environ.get("CHECKOUT_CURRENCY", "gbp").strip().lower()
FRONTEND_URL = os.environ.get("FRONTEND_URL", "http://localhost:3000").rstrip("/")

# ================== HTTP ==================

def cors_origins() -> List[str]:
    raw = os.environ.get("CORS_ORIGINS", "http://localhost:3000,https://uk-hikers-fr.vercel.app")
    return [o.strip() for o in raw.split(",") if o.strip()]

# ================== LOGGING ==================

LOG_DIR = os.getenv("LOG_DIR", "logs")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# ================== DATABASE ==================
# SQLite by default, MySQL when MYSQL_HOST points somewhere real

DATABASE_URL = os.environ.get("DATABASE_URL", "")

def get_database_url() -> str:
    """Get database URL - supports SQLite or MySQL."""
    if DATABASE_URL:
        return DATABASE_URL

    mysql_host = os.environ.get("MYSQL_HOST")
    if mysql_host and mysql_host != "127.0.0.1":
        mysql_port = int(os.environ.get("MYSQL_PORT", "3306"))
        mysql_user = os.environ.get("MYSQL_USER", "root")
        mysql_password = os.environ.get("MYSQL_PASSWORD", "")
        mysql_db = os.environ.get("MYSQL_DB", "ukhiker")
        return f"mysql+aiomysql://{mysql_user}:{mysql_password}@{mysql_host}:{mysql_port}/{mysql_db}?charset=utf8mb4"

    db_path = ROOT_DIR / "ukhiker.db"
    return f"sqlite+aiosqlite:///{db_path}"
