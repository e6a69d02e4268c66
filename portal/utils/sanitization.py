import re
from typing import Optional


def clean_optional(value: Optional[str]) -> Optional[str]:
    """Trim a form value; blank strings become None"""
    if value is None:
        return None
    value = value.strip()
    return value or None


def digits_only(value: Optional[str]) -> str:
    """Strip everything but digits (phone numbers are stored this way)"""
    return re.sub(r"\D", "", value or "")


def get_client_ip(headers) -> str:
    """First x-forwarded-for hop, then x-real-ip, else "unknown" """
    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return headers.get("x-real-ip") or "unknown"
