import os

SECRET_KEY = os.environ["SECRET_KEY"]

DB_CONFIG = {
    "host": os.environ["DB_HOST"],
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.environ["DB_USER"],
    "password": os.environ["DB_PASSWORD"],
    "database": os.getenv("DB_NAME", "university_erp"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
SESSION_DAYS = int(os.getenv("SESSION_DAYS", "7"))

MAX_CREDITS_PER_SEMESTER = int(os.getenv("MAX_CREDITS_PER_SEMESTER", "21"))
MINIMUM_GRADUATION_GPA = os.getenv("MINIMUM_GRADUATION_GPA", "2.0")
STATEMENT_DUE_DAYS = int(os.getenv("STATEMENT_DUE_DAYS", "30"))

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = False
