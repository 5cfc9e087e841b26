import os

from dotenv import load_dotenv

load_dotenv()

APP_ENV = os.getenv("APP_ENV", "development")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Database
DATABASE_URL = os.getenv("DATABASE_URL")
DATABASE_NAME = os.getenv("DATABASE_NAME", "devcamper")

# Auth
JWT_SECRET = os.getenv("JWT_SECRET", "dev_secret_change_me")
JWT_ALGORITHM = "HS256"
JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", 60 * 24 * 30))  # 30 days
JWT_COOKIE_EXPIRE_DAYS = int(os.getenv("JWT_COOKIE_EXPIRE_DAYS", 30))
RESET_TOKEN_EXPIRE_MINUTES = 10

# Uploads
MAX_FILE_UPLOAD = int(os.getenv("MAX_FILE_UPLOAD", 1000000))
FILE_UPLOAD_PATH = os.getenv("FILE_UPLOAD_PATH", "./public/uploads")

# Geocoding (MapQuest)
GEOCODER_URL = os.getenv("GEOCODER_URL", "https://www.mapquestapi.com/geocoding/v1/address")
GEOCODER_API_KEY = os.getenv("GEOCODER_API_KEY")

# Mail
SMTP_HOST = os.getenv("SMTP_HOST")
SMTP_PORT = int(os.getenv("SMTP_PORT", 587))
SMTP_USERNAME = os.getenv("SMTP_USERNAME")
SMTP_PASSWORD = os.getenv("SMTP_PASSWORD")
FROM_NAME = os.getenv("FROM_NAME", "DevCamper")
FROM_EMAIL = os.getenv("FROM_EMAIL", "noreply@devcamper.io")


def is_production() -> bool:
    return APP_ENV == "production"
