import os

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "university_erp"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

# Academic and billing policy
MAX_CREDITS_PER_SEMESTER = int(os.getenv("MAX_CREDITS_PER_SEMESTER", "21"))
MINIMUM_GRADUATION_GPA = os.getenv("MINIMUM_GRADUATION_GPA", "2.0")
STATEMENT_DUE_DAYS = int(os.getenv("STATEMENT_DUE_DAYS", "30"))

# Apply database/schema.sql on startup (CREATE TABLE IF NOT EXISTS, safe to repeat)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
# Load database/seed.sql plus the demo accounts
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))
