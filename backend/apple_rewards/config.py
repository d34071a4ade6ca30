# backend/apple_rewards/config.py
from __future__ import annotations
import os


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/apple_rewards.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///apple_rewards.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Login sessions (server-issued tokens, mirrored into an HttpOnly cookie)
    SESSION_LIFETIME_HOURS = _env_int("SESSION_LIFETIME_HOURS", 24 * 7)
    SESSION_COOKIE_NAME_AUTH = "auth_session"
    SESSION_COOKIE_SECURE = os.environ.get("SESSION_COOKIE_SECURE", "false").lower() == "true"

    # Reward policy
    BASE_SESSION_VALUE = _env_int("BASE_SESSION_VALUE", 150)
    SESSION_VALUE_INCREMENT = _env_int("SESSION_VALUE_INCREMENT", 20)
    SESSIONS_PER_MILESTONE = _env_int("SESSIONS_PER_MILESTONE", 20)

    # Count-based loyalty bonus; 0 disables it
    LOYALTY_BONUS_INTERVAL = _env_int("LOYALTY_BONUS_INTERVAL", 0)
    LOYALTY_BONUS_APPLES = _env_int("LOYALTY_BONUS_APPLES", 0)
