import os

from dotenv import load_dotenv

load_dotenv()


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-only-change-me")

    # The live database is in-memory; durability comes from the snapshot file.
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # None → <instance_path>/collection.db
    SNAPSHOT_PATH = os.environ.get("DECKVAULT_SNAPSHOT")
    SNAPSHOT_ON_EXIT = True

    # Scryfall asks for 50–100 ms between requests
    PRICE_REFRESH_DELAY = max(float(os.environ.get("PRICE_REFRESH_DELAY", "0.1")), 0.1)
    PRICE_REFRESH_RATE_LIMIT = os.environ.get("PRICE_REFRESH_RATE_LIMIT", "6 per hour")
    SCRYFALL_TIMEOUT = float(os.environ.get("SCRYFALL_TIMEOUT", "10"))

    RATELIMIT_ENABLED = True
    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG")


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SNAPSHOT_ON_EXIT = False
    PRICE_REFRESH_DELAY = 0.0
    RATELIMIT_ENABLED = False
    LOG_LEVEL = "WARNING"


config = {
    "development": DevelopmentConfig,
    "production":  ProductionConfig,
    "testing":     TestingConfig,
    "default":     DevelopmentConfig,
}
