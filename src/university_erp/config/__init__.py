import os

SETTINGS_MODULES = {
    "production": "university_erp.config.production",
    "prod": "university_erp.config.production",
    "testing": "university_erp.config.testing",
    "test": "university_erp.config.testing",
}


def get_settings_module() -> str:
    """Settings module for APP_ENV; unknown or missing values mean development."""
    env = os.getenv("APP_ENV", "development").strip().lower()
    return SETTINGS_MODULES.get(env, "university_erp.config.development")
