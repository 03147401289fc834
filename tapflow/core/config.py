import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # DATABASE
    DATABASE_URL = os.getenv("DATABASE_URL")
    DB_HOST = os.getenv("DB_HOST")
    DB_PORT = os.getenv("DB_PORT", "5432")
    DB_NAME = os.getenv("DB_NAME")
    DB_USER = os.getenv("DB_USER")
    DB_PASSWORD = os.getenv("DB_PASSWORD")

    # LLM (any OpenAI-compatible chat endpoint)
    LLM_API_KEY = os.getenv("LLM_API_KEY")
    LLM_BASE_URL = os.getenv("LLM_BASE_URL")
    LLM_MODEL = os.getenv("LLM_MODEL", "gpt-4o-mini")

    # CONTACT FINDER
    HUNTER_API_URL = os.getenv("HUNTER_API_URL", "https://api.hunter.io/v2/domain-search")
    HUNTER_API_KEY = os.getenv("HUNTER_API_KEY")

    # EMAIL SENDING (ZeptoMail-compatible HTTP API)
    EMAIL_API_URL = os.getenv("EMAIL_API_URL", "https://api.zeptomail.com/v1.1/email")
    EMAIL_API_KEY = os.getenv("EMAIL_API_KEY")
    EMAIL_FROM_ADDRESS = os.getenv("EMAIL_FROM_ADDRESS")

    # EVENT WEBHOOK
    EVENT_WEBHOOK_SECRET = os.getenv("EVENT_WEBHOOK_SECRET")

    # CORS
    CORS_ORIGINS = [
        o.strip()
        for o in os.getenv("CORS_ORIGINS", "http://localhost:3000,http://127.0.0.1:3000").split(",")
        if o.strip()
    ]

    # SCHEDULER
    SCHEDULER_ENABLED = os.getenv("SCHEDULER_ENABLED", "true").lower() in ("1", "true", "yes")
    DISPATCH_INTERVAL_SECONDS = int(os.getenv("DISPATCH_INTERVAL_SECONDS", "5"))

    # LIMITS
    DAILY_EMAIL_LIMIT = int(os.getenv("DAILY_EMAIL_LIMIT", "100"))

settings = Settings()
