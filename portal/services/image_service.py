"""
Image compression for uploads.
Photos are re-encoded as WebP before they reach object storage.
"""

import io
import logging

from PIL import Image

logger = logging.getLogger(__name__)

WEBP_QUALITY = 80


def compress_to_webp(image_bytes: bytes, quality: int = WEBP_QUALITY) -> bytes:
    """
    Re-encode image bytes as WebP

    Raises:
        OSError / PIL errors when the bytes are not a readable image
    """
    original_size = len(image_bytes)
    img = Image.open(io.BytesIO(image_bytes))

    # WebP handles RGBA, but palette and CMYK images need converting first
    if img.mode not in ("RGB", "RGBA"):
        img = img.convert("RGBA" if "A" in img.getbands() or img.mode == "P" else "RGB")

    output = io.BytesIO()
    img.save(output, format="WEBP", quality=quality)
    optimized = output.getvalue()

    logger.info(f"🗜️ Compressed image to WebP: {original_size} -> {len(optimized)} bytes")
    return optimized
