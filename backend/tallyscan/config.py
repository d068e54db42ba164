# backend/tallyscan/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tallyscan.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tallyscan.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Scanner hardware often fires several reads for one physical scan
    SCAN_DEBOUNCE_MS = int(os.environ.get("SCAN_DEBOUNCE_MS", "500"))

    # Photo autofill endpoint (optional). Unset disables /api/counts/autofill.
    PRODUCT_EXTRACT_URL = os.environ.get("PRODUCT_EXTRACT_URL")
    PRODUCT_EXTRACT_TIMEOUT = float(os.environ.get("PRODUCT_EXTRACT_TIMEOUT", "10"))
