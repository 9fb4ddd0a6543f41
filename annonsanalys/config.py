# annonsanalys/config.py
from __future__ import annotations
import os


def _csv(name: str) -> list[str]:
    return [s.strip() for s in os.environ.get(name, "").split(",") if s.strip()]


def _flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    # Flask
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key")
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_SAMESITE = "Lax"

    # Supabase (service role, server side only)
    SUPABASE_URL = os.environ.get("SUPABASE_URL", "")
    SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY", "")

    # OpenAI
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY", "")

    # Ad analysis
    ANALYSIS_MODEL = os.environ.get("ANALYSIS_MODEL", "gpt-4o-mini")
    ANALYSIS_MAX_TOKENS = int(os.environ.get("ANALYSIS_MAX_TOKENS", "4096"))
    ANALYSIS_TEMPERATURE = float(os.environ.get("ANALYSIS_TEMPERATURE", "0.4"))
    ANALYSIS_LANGUAGE = os.environ.get("ANALYSIS_LANGUAGE", "Swedish")
    ANALYSIS_USE_SCHEMA = _flag("ANALYSIS_USE_SCHEMA")

    # Tables
    ANALYSES_TABLE = os.environ.get("ANALYSES_TABLE", "ad_rawdata")
    TOKENS_TABLE = os.environ.get("TOKENS_TABLE", "ad_analysis_tokens")
    ANSWERS_TABLE = os.environ.get("ANSWERS_TABLE", "ad_preference_answers")
    USERS_TABLE = os.environ.get("USERS_TABLE", "users")

    # Dashboard admins (emails or auth_ids), comma-separated
    ANNONSANALYS_ADMINS = set(_csv("ANNONSANALYS_ADMINS"))

    # CORS origins if you need them (comma-separated)
    CORS_ORIGINS = _csv("CORS_ORIGINS")


class DevConfig(Config):
    DEBUG = True
    SESSION_COOKIE_SECURE = False


class ProdConfig(Config):
    DEBUG = False


class TestConfig(Config):
    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-key"
    SESSION_COOKIE_SECURE = False
    ANNONSANALYS_ADMINS = {"ops@example.com"}


def get_config(env: str | None = None):
    """Resolve config by env string or environment variables."""
    env = (env or os.environ.get("ANNONSANALYS_ENV") or os.environ.get("FLASK_ENV") or "production").lower()
    if env in ("dev", "development"):
        return DevConfig
    if env in ("test", "testing"):
        return TestConfig
    return ProdConfig
