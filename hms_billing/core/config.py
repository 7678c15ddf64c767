# hms_billing/core/config.py
import os
from typing import List, Optional
from pydantic import BaseModel
from dotenv import load_dotenv

load_dotenv()


def _split_csv(value: str) -> List[str]:
    return [v.strip() for v in (value or "").split(",") if v.strip()]


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class Settings(BaseModel):
    PROJECT_NAME: str = os.getenv("PROJECT_NAME", "Hospital Management System")
    API_V1_STR: str = os.getenv("API_V1_STR", "/api")

    # CORS (env takes priority)
    BACKEND_CORS_ORIGINS: List[str] = _split_csv(
        os.getenv(
            "CORS_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173",
        ))

    # ---------- Upstream billing REST API ----------
    BILLING_API_BASE_URL: str = os.getenv("BILLING_API_BASE_URL",
                                          "http://127.0.0.1:5000/api")
    BILLING_API_TIMEOUT: float = float(
        os.getenv("BILLING_API_TIMEOUT", "15") or 15.0)
    BILLING_API_TOKEN: Optional[str] = _optional(
        os.getenv("BILLING_API_TOKEN"))

    # ---------- Session ----------
    SESSION_FILE: Optional[str] = _optional(os.getenv("SESSION_FILE"))

    # ---------- Billing display ----------
    CURRENCY_SYMBOL: str = os.getenv("CURRENCY_SYMBOL", "$")
    BILLING_PAGE_SIZE: int = int(os.getenv("BILLING_PAGE_SIZE", "10"))
    TIMEZONE: str = os.getenv("TIMEZONE", "UTC")

    # ---------- Logging ----------
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    LOG_FILE: Optional[str] = _optional(os.getenv("LOG_FILE"))


settings = Settings()
