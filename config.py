"""Configuration settings for the collaboration API"""
import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_JWT_SECRET = "change-me"


class Settings:
    """Application settings"""

    # Database
    DATABASE_URL = os.getenv("DATABASE_URL")
    DATABASE_NAME = os.getenv("DATABASE_NAME", "collab")

    # Auth
    JWT_SECRET = os.getenv("JWT_SECRET", DEFAULT_JWT_SECRET)
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRES_MINUTES = int(os.getenv("JWT_EXPIRES_MINUTES", str(60 * 24 * 7)))

    # Server
    PORT = int(os.getenv("PORT", "8000"))
    CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


settings = Settings()

# Seed list offered alongside the categories already in use
BASE_CATEGORIES = [
    "web",
    "mobile",
    "ai/ml",
    "blockchain",
    "game-dev",
    "cybersecurity",
    "data-science",
    "other",
]

PROJECT_DEFAULTS = {
    "commitment": "10-20",
    "communication": "discord",
    "githubRequired": False,
}

REQUIRED_PROJECT_FIELDS = [
    "title",
    "description",
    "requirements",
    "techStack",
    "teamSize",
    "timeframe",
    "difficulty",
    "category",
]

# Suggestions
SUGGESTION_MIN_LENGTH = 2
SUGGESTION_TITLE_LIMIT = 5
SUGGESTION_TECH_LIMIT = 5
SUGGESTION_CATEGORY_LIMIT = 3
