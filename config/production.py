import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "attendance_fines"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

DEFAULT_STUDENT_FINE = os.getenv("DEFAULT_STUDENT_FINE", "50")
DEFAULT_OFFICER_FINE = os.getenv("DEFAULT_OFFICER_FINE", "100")

QR_RELEASE_LEAD_MINUTES = int(os.getenv("QR_RELEASE_LEAD_MINUTES", "60"))

# Prefer running scripts/reconcile_worker.py as its own process in production.
ENABLE_RECONCILE_WORKER = bool(int(os.getenv("ENABLE_RECONCILE_WORKER", "0")))
RECONCILE_INTERVAL_SECONDS = int(os.getenv("RECONCILE_INTERVAL_SECONDS", "60"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
