# campusvote/config.py
# Central place for settings and constants
import os

from dotenv import load_dotenv

load_dotenv()

# --- Database Config ---
MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DB = os.getenv("MONGO_DB", "campusvote")

VOTERS_COLLECTION_NAME = "voters"
POLLS_COLLECTION_NAME = "polls"
VOTES_COLLECTION_NAME = "votes"
ADMINS_COLLECTION_NAME = "admins"

# --- Security & JWT Config ---
# In production, use secure, environment-variable-based secrets
SECRET_KEY = os.getenv("SECRET_KEY", "a_very_secret_key_for_dev_only")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# --- Mail Config ---
SMTP_HOST = os.getenv("SMTP_HOST", "smtp.gmail.com")
SMTP_PORT = int(os.getenv("SMTP_PORT", "587"))
SMTP_USER = os.getenv("SMTP_USER", "")
SMTP_PASS = os.getenv("SMTP_PASS", "")
SMTP_FROM = os.getenv("SMTP_FROM", "noreply@votingsystem.com")
APP_URL = os.getenv("APP_URL", "http://localhost:3000")

# --- HTTP Config ---
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# --- Roster rules ---
VALID_YEARS = ("1", "2", "3", "4")
WILDCARD = "ALL"
CREDENTIAL_LENGTH = 8
MAX_REPORTED_ERRORS = 10
