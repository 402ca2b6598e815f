# backend/hazel/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/hazel.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///hazel.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Business dates ("today", default month) are resolved in the shop's timezone
    APP_TIMEZONE = os.environ.get("APP_TIMEZONE", "Asia/Seoul")

    # Web Push (VAPID). Keys are read lazily when a push is sent.
    VAPID_PUBLIC_KEY = os.environ.get("VAPID_PUBLIC_KEY")
    VAPID_PRIVATE_KEY = os.environ.get("VAPID_PRIVATE_KEY")
    VAPID_SUBJECT = os.environ.get("VAPID_SUBJECT", "mailto:admin@hazel.local")

    # Unexpected errors are posted here when set
    ERROR_WEBHOOK_URL = os.environ.get("ERROR_WEBHOOK_URL")

    # Shared secret for the scheduled reminder endpoints
    CRON_SECRET = os.environ.get("CRON_SECRET")

    # Photo storage (local filesystem buckets)
    STORAGE_ROOT = os.environ.get("STORAGE_ROOT", os.path.join(os.getcwd(), "instance", "storage"))
    STORAGE_PUBLIC_URL = os.environ.get("STORAGE_PUBLIC_URL", "/media")
    MAX_UPLOAD_BYTES = int(os.environ.get("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024)))

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:3000,http://127.0.0.1:3000",
        ).split(",")
        if origin.strip()
    ]
