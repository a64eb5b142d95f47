"""
config.py
=========
Environment-driven settings for the clinic intake backend.
Every value can be overridden through an environment variable (or .env loaded
by the process manager).
"""

import os


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# Database path (SQLite file)
DB_PATH = os.getenv("CLINIC_DB", "data/clinic.db")

# JWT signing
JWT_SECRET = os.getenv("JWT_SECRET", "change-me-clinic-intake-secret")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_HOURS = int(os.getenv("JWT_EXPIRE_HOURS", "24"))

# bcrypt cost factor
BCRYPT_ROUNDS = int(os.getenv("BCRYPT_ROUNDS", "12"))

# Default admin account, seeded on startup when no admin exists
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@clinic.local")
ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Clinic Admin")

# Pushover alerts for high priority intake forms (optional)
PUSHOVER_TOKEN = os.getenv("PUSHOVER_TOKEN")
PUSHOVER_USER = os.getenv("PUSHOVER_USER")

# Reject submissions for unknown templates with 404 instead of storing them
# without a priority
STRICT_TEMPLATE_LOOKUP = _flag("STRICT_TEMPLATE_LOOKUP")

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv("CORS_ORIGINS", "http://localhost:5173,http://localhost:3000").split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FILE = os.getenv("LOG_FILE")
