"""
Token encryption - AES-256-CBC

Meta OAuth tokens are encrypted before they are stored. TOKEN_ENCRYPTION_KEY must be
32 bytes written as 64 hex characters. Ciphertext is stored as "ivhex:cipherhex"
with a fresh random IV per call.
"""

import logging
import os
import secrets
from typing import Optional

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

IV_LENGTH = 16  # AES block size


class EncryptionKeyError(Exception):
    """TOKEN_ENCRYPTION_KEY is missing or malformed"""


def get_encryption_key() -> bytes:
    key = os.getenv("TOKEN_ENCRYPTION_KEY")
    if not key:
        raise EncryptionKeyError("TOKEN_ENCRYPTION_KEY environment variable is not set")
    if len(key) != 64:
        raise EncryptionKeyError("TOKEN_ENCRYPTION_KEY must be 64 hex characters (32 bytes)")
    try:
        return bytes.fromhex(key)
    except ValueError as e:
        raise EncryptionKeyError("TOKEN_ENCRYPTION_KEY must be hex encoded") from e


def encrypt(text: Optional[str]) -> Optional[str]:
    if not text:
        return None

    iv = os.urandom(IV_LENGTH)
    padder = padding.PKCS7(algorithms.AES.block_size).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(get_encryption_key()), modes.CBC(iv)).encryptor()
    encrypted = encryptor.update(padded) + encryptor.finalize()
    return f"{iv.hex()}:{encrypted.hex()}"


def decrypt(encrypted_text: Optional[str]) -> Optional[str]:
    """
    Reverse encrypt().

    Raises:
        ValueError if the value is not in "ivhex:cipherhex" form or fails to unpad
    """
    if not encrypted_text:
        return None

    parts = encrypted_text.split(":")
    if len(parts) != 2:
        raise ValueError("Invalid encrypted text format")

    iv = bytes.fromhex(parts[0])
    encrypted = bytes.fromhex(parts[1])

    decryptor = Cipher(algorithms.AES(get_encryption_key()), modes.CBC(iv)).decryptor()
    padded = decryptor.update(encrypted) + decryptor.finalize()

    unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")


def validate_key() -> bool:
    try:
        get_encryption_key()
        return True
    except EncryptionKeyError as e:
        logger.error(f"Encryption key validation failed: {e}")
        return False


def generate_new_key() -> str:
    return secrets.token_hex(32)
