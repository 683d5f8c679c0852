"""
Configuration for the SEO report dashboard
"""
import os
from pathlib import Path
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Base directory
BASE_DIR = Path(__file__).parent.parent

# Database - Railway style postgres:// URLs are normalised in database.py
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'seoreport.db'}")

# CORS
cors_origins_str = os.getenv("ALLOWED_ORIGINS", "*")
if cors_origins_str.strip() == "*":
    ALLOWED_ORIGINS = ["*"]
else:
    ALLOWED_ORIGINS = [origin.strip() for origin in cors_origins_str.split(",") if origin.strip()]
    if not ALLOWED_ORIGINS:
        ALLOWED_ORIGINS = ["*"]

# Authentication
SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
try:
    ACCESS_TOKEN_EXPIRE_HOURS = int(os.getenv("ACCESS_TOKEN_EXPIRE_HOURS", "24"))
except (ValueError, TypeError):
    ACCESS_TOKEN_EXPIRE_HOURS = 24

# SEO devs may only manage customers assigned to them when enabled
SEO_DEV_ASSIGNED_ONLY = os.getenv("SEO_DEV_ASSIGNED_ONLY", "false").strip().lower() in ("1", "true", "yes")

# Uploads are served from UPLOAD_ROOT/uploads/{category}/
UPLOAD_ROOT = Path(os.getenv("UPLOAD_ROOT", str(BASE_DIR / "public")))
try:
    MAX_UPLOAD_SIZE = int(os.getenv("MAX_UPLOAD_SIZE", str(5 * 1024 * 1024)))
except (ValueError, TypeError):
    MAX_UPLOAD_SIZE = 5 * 1024 * 1024
MAX_AI_OVERVIEW_IMAGES = 3

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
