import os
from dotenv import load_dotenv

load_dotenv()


def env_flag(name, default="false"):
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///database.db")
    AUTO_CREATE_TABLES = env_flag("AUTO_CREATE_TABLES", "true")

    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")

    PORT = int(os.getenv("PORT", 3000))
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    basedir = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

    # "cloudinary" or "local"
    STORAGE_BACKEND = os.getenv("STORAGE_BACKEND", "cloudinary")
    CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET")
    CLOUDINARY_FOLDER = os.getenv("CLOUDINARY_FOLDER", "orders")

    STORAGE_FOLDER = os.getenv("STORAGE_FOLDER", os.path.join(basedir, "uploads"))
    TEMP_FOLDER = os.getenv("TEMP_FOLDER", os.path.join(basedir, "temp"))

    UPLOAD_TIMEOUT = float(os.getenv("UPLOAD_TIMEOUT", 60))
    UPLOAD_MAX_ATTEMPTS = int(os.getenv("UPLOAD_MAX_ATTEMPTS", 2))
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_UPLOAD_MB", 50)) * 1024 * 1024


class DevelopmentConfig(Config):
    DEBUG = True


class ProductionConfig(Config):
    DEBUG = False


class TestingConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    STORAGE_BACKEND = "local"
    UPLOAD_MAX_ATTEMPTS = 1
