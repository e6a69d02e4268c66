"""
Security Utilities
PIN hashing, session JWTs, signed upload receipts and input sanitization
"""

import logging
import os
import re
import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

# Input sanitization
import bleach

# Token generation and validation
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from jose import JWTError
from jose import jwt as jose_jwt

# Password hashing
from passlib.context import CryptContext

from .config import RECEIPT_MAX_AGE_SECONDS, SECRET_KEY

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
RECEIPT_SALT = "sensitive-document-receipt"

# Password hashing context
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

PIN_PATTERN = re.compile(r"^\d{4}$")


# ============================================================================
# PIN SECURITY
# ============================================================================


def is_valid_pin(pin: Optional[str]) -> bool:
    """Account passwords are exactly four digits"""
    return bool(pin) and bool(PIN_PATTERN.match(pin))


def hash_password_bcrypt(password: str) -> str:
    """Hash password using bcrypt"""
    return pwd_context.hash(password)


def verify_password_bcrypt(plain_password: str, hashed_password: str) -> bool:
    """Verify password against bcrypt hash"""
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except Exception as e:
        logger.error(f"Password verification error: {e}")
        return False


# ============================================================================
# SESSION TOKENS
# ============================================================================


def create_jwt_token(data: dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT token

    Args:
        data: Claims to encode in the token
        expires_delta: Token expiration time (default 15 minutes)
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=15)

    to_encode.update({"exp": expire})
    return jose_jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def verify_jwt_token(token: str, secret: str = SECRET_KEY) -> Optional[dict[str, Any]]:
    """
    Verify and decode a JWT token. Pure function of (token, secret).

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jose_jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        return None


# ============================================================================
# SENSITIVE DOCUMENT RECEIPTS
# ============================================================================


def _receipt_serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(SECRET_KEY, salt=RECEIPT_SALT)


def generate_receipt_token(user_id: int, file_type: str) -> str:
    """
    Issue a signed receipt proving one sensitive document reached the
    customer's Slack channel. The document itself is never stored.
    """
    return _receipt_serializer().dumps({"userId": user_id, "fileType": file_type})


def verify_receipt_token(token: str, max_age: int = RECEIPT_MAX_AGE_SECONDS) -> Optional[dict[str, Any]]:
    """
    Verify and decode a receipt token

    Returns:
        Decoded data if valid, None if invalid or expired
    """
    try:
        return _receipt_serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.warning("Receipt expired")
        return None
    except BadSignature:
        logger.warning("Invalid receipt signature")
        return None


# ============================================================================
# INPUT SANITIZATION
# ============================================================================


def strip_markup(content: str) -> str:
    """Remove every HTML tag from user-entered plain text"""
    return bleach.clean(content, tags=[], attributes={}, strip=True)


def sanitize_filename(filename: str) -> str:
    """
    Sanitize filename to prevent directory traversal and other attacks

    Args:
        filename: Original filename (extension excluded)

    Returns:
        Safe filename
    """
    # Remove path components
    filename = os.path.basename(filename)

    # Only ASCII letters, digits, dots, dashes and underscores survive in storage keys
    filename = re.sub(r"[^a-zA-Z0-9._-]", "_", filename)
    filename = filename.strip("._")

    if len(filename) > 100:
        filename = filename[:100]

    if not filename:
        filename = f"file_{secrets.token_hex(4)}"

    return filename
