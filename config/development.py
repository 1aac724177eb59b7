import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_fines"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# Used until an admin saves the organization's own fine settings.
DEFAULT_STUDENT_FINE = os.getenv("DEFAULT_STUDENT_FINE", "50")
DEFAULT_OFFICER_FINE = os.getenv("DEFAULT_OFFICER_FINE", "100")

QR_RELEASE_LEAD_MINUTES = int(os.getenv("QR_RELEASE_LEAD_MINUTES", "60"))

ENABLE_RECONCILE_WORKER = bool(int(os.getenv("ENABLE_RECONCILE_WORKER", "1")))
RECONCILE_INTERVAL_SECONDS = int(os.getenv("RECONCILE_INTERVAL_SECONDS", "60"))

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Optional: also seed demo data on startup
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
