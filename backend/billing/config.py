# backend/billing/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # Local terminals default to a SQLite file; shared deployments point DATABASE_URL at Postgres
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///billing.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Invoice numbering: <prefix><zero-padded counter>, e.g. glxy0042
    INVOICE_PREFIX = os.environ.get("INVOICE_PREFIX", "glxy")
    INVOICE_NUMBER_MAX_ATTEMPTS = int(os.environ.get("INVOICE_NUMBER_MAX_ATTEMPTS", "3"))
    INVOICE_DEGRADED_NUMBERING = _env_flag("INVOICE_DEGRADED_NUMBERING", "true")

    # Receipt header
    BUSINESS_NAME = os.environ.get("BUSINESS_NAME", "Business Name")
    BUSINESS_ADDRESS = os.environ.get("BUSINESS_ADDRESS", "")
    BUSINESS_PHONE = os.environ.get("BUSINESS_PHONE", "")
    BUSINESS_EMAIL = os.environ.get("BUSINESS_EMAIL", "")
    CURRENCY_CODE = os.environ.get("CURRENCY_CODE", "AED")
