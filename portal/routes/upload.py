import logging
import os
import time
from typing import Optional

import boto3
from botocore.config import Config
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import R2_ACCESS_KEY_ID, R2_ACCOUNT_ID, R2_BUCKET_NAME, R2_PUBLIC_URL, R2_SECRET_ACCESS_KEY
from ..database import get_db
from ..domain.submissions.service import SubmissionService
from ..models import SENSITIVE_FILE_TYPES, User
from ..security_utils import generate_receipt_token, sanitize_filename
from ..services import slack_service
from ..services.image_service import compress_to_webp

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])

__all__ = ["router", "get_r2_client", "R2_BUCKET_NAME"]

MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/webp": "webp",
    "application/pdf": "pdf",
}


def get_r2_client():
    """Create and return an R2 client."""
    return boto3.client(
        "s3",
        endpoint_url=f"https://{R2_ACCOUNT_ID}.r2.cloudflarestorage.com",
        aws_access_key_id=R2_ACCESS_KEY_ID,
        aws_secret_access_key=R2_SECRET_ACCESS_KEY,
        config=Config(signature_version="s3v4"),
    )


def public_url_for(key: str) -> str:
    return f"{R2_PUBLIC_URL.rstrip('/')}/{key}"


async def _forward_sensitive_file(
    user: User, db: Session, contents: bytes, filename: str, file_type: str
) -> dict:
    """Send the document to the customer's Slack channel and hand back a signed receipt"""
    channel_id = await SubmissionService(db).ensure_slack_channel(user)
    if not channel_id:
        raise HTTPException(status_code=500, detail="민감정보 파일 전송에 실패했습니다")

    delivered = await slack_service.upload_sensitive_file(channel_id, contents, filename, file_type, user.name)
    if not delivered:
        raise HTTPException(status_code=500, detail="민감정보 파일 전송에 실패했습니다")

    logger.info(f"🔒 Sensitive document {file_type} forwarded for user {user.id}, not stored")
    return {
        "success": True,
        "isSensitive": True,
        "fileType": file_type,
        "receipt": generate_receipt_token(user.id, file_type),
        "message": "민감정보 파일이 안전하게 전송되었습니다 (서버에 저장되지 않음)",
    }


@router.post("")
async def upload_file(
    file: Optional[UploadFile] = File(None),
    fileType: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """
    Upload a submission file.

    Sensitive documents (business license, ID card, bank book) go to Slack
    from memory only. Everything else is stored in R2; photos as WebP.
    """
    if file is None or not fileType:
        raise HTTPException(status_code=400, detail="파일이 필요합니다")

    contents = await file.read()
    if len(contents) > MAX_FILE_SIZE:
        raise HTTPException(status_code=400, detail="파일 크기는 10MB를 초과할 수 없습니다")

    content_type = file.content_type
    if content_type not in ALLOWED_TYPES:
        raise HTTPException(status_code=400, detail="허용되지 않는 파일 형식입니다 (jpg, png, webp, pdf만 가능)")

    original_name = file.filename or f"{fileType}.{ALLOWED_TYPES[content_type]}"
    logger.info(f"📤 Upload from user {current_user.id}: {fileType} ({content_type}, {len(contents)} bytes)")

    if fileType in SENSITIVE_FILE_TYPES:
        return await _forward_sensitive_file(current_user, db, contents, original_name, fileType)

    ext = ALLOWED_TYPES[content_type]
    if content_type.startswith("image/"):
        try:
            contents = compress_to_webp(contents)
            content_type = "image/webp"
            ext = "webp"
        except Exception as e:
            logger.warning(f"WebP compression failed for {original_name}, keeping original: {e}")

    base_name = sanitize_filename(os.path.splitext(original_name)[0])
    key = f"uploads/{current_user.id}/{int(time.time() * 1000)}-{base_name}.{ext}"

    try:
        r2 = get_r2_client()
        r2.put_object(Bucket=R2_BUCKET_NAME, Key=key, Body=contents, ContentType=content_type)
    except Exception as e:
        logger.error(f"❌ Upload failed: {str(e)}")
        raise HTTPException(status_code=500, detail="파일 업로드 중 오류가 발생했습니다")

    public_url = public_url_for(key)
    logger.info(f"✅ Stored {key} in R2")
    return {
        "success": True,
        "url": public_url,
        "key": key,
        "publicUrl": public_url,
        "fileName": title or original_name,
        "fileType": fileType,
        "size": len(contents),
        "isSensitive": False,
    }
