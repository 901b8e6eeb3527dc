from __future__ import annotations
import os
from pathlib import Path

class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")
    BASE_DIR = Path(__file__).resolve().parent
    # SQLite file in project directory
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", f"sqlite:///{BASE_DIR / 'lessons.db'}")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JSON_SORT_KEYS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # lesson defaults applied to fresh drafts
    DEFAULT_DURATION_MINUTES = int(os.getenv("DEFAULT_DURATION_MINUTES", "60"))
    DEFAULT_LESSON_TYPE = os.getenv("DEFAULT_LESSON_TYPE", "PRIVATE")
    DEFAULT_SUBJECT = os.getenv("DEFAULT_SUBJECT", "Piano")
    # upper bound for the recurring horizon, in calendar months
    MAX_RECURRING_MONTHS = int(os.getenv("MAX_RECURRING_MONTHS", "12"))

class DevConfig(BaseConfig):
    DEBUG = True
    SEED_DEMO_DATA = True

class TestConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SEED_DEMO_DATA = False

class ProdConfig(BaseConfig):
    DEBUG = False
    SEED_DEMO_DATA = False

config_map = {
    "dev": DevConfig,
    "test": TestConfig,
    "prod": ProdConfig,
    "default": DevConfig,
}
