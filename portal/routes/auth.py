import logging
import re
from datetime import datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..auth import get_current_user
from ..config import AUTH_COOKIE_NAME, ENVIRONMENT, SESSION_MAX_AGE_DAYS
from ..database import get_db
from ..models import DEFAULT_WORKFLOW_TYPES, Submission, User, Workflow
from ..security_utils import create_jwt_token, hash_password_bcrypt, is_valid_pin, verify_password_bcrypt
from ..utils.sanitization import clean_optional, digits_only

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Authentication"])

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SignupRequest(BaseModel):
    clientName: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None
    smsConsent: bool = False
    emailConsent: bool = False


class LoginRequest(BaseModel):
    clientName: Optional[str] = None
    phone: Optional[str] = None
    password: Optional[str] = None


def user_summary(user: User) -> dict:
    return {"id": user.id, "clientName": user.client_name, "name": user.name, "email": user.email}


@router.post("/signup", status_code=201)
async def signup(data: SignupRequest, db: Session = Depends(get_db)):
    """
    Register a customer account.
    The user, an empty submission and the default workflows are created in one transaction.
    """
    client_name = clean_optional(data.clientName)
    name = clean_optional(data.name)
    email = clean_optional(data.email)
    phone = digits_only(data.phone)

    if not all([client_name, name, email, phone, data.password]):
        raise HTTPException(status_code=400, detail="필수 정보를 모두 입력해주세요")

    if not EMAIL_PATTERN.match(email):
        raise HTTPException(status_code=400, detail="올바른 이메일 형식을 입력해주세요")

    if not is_valid_pin(data.password):
        raise HTTPException(status_code=400, detail="비밀번호는 4자리 숫자로 입력해주세요")

    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=400, detail="이미 등록된 이메일입니다")

    if db.query(User).filter(User.client_name == client_name, User.phone == phone).first():
        raise HTTPException(status_code=400, detail="이미 가입된 클라이언트입니다")

    user = User(
        client_name=client_name,
        name=name,
        email=email,
        phone=phone,
        password=hash_password_bcrypt(data.password),
        sms_consent=data.smsConsent,
        email_consent=data.emailConsent,
    )
    try:
        db.add(user)
        db.flush()
        db.add(Submission(user_id=user.id, status="DRAFT", sensitive_documents={}))
        for workflow_type in DEFAULT_WORKFLOW_TYPES:
            db.add(Workflow(user_id=user.id, type=workflow_type, status="PENDING"))
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning(f"❌ Signup race on duplicate email {email}")
        raise HTTPException(status_code=400, detail="이미 등록된 이메일입니다")

    db.refresh(user)
    logger.info(f"✅ New account {user.id} for client '{client_name}'")
    return {"success": True, "user": user_summary(user)}


@router.post("/login")
async def login(data: LoginRequest, response: Response, db: Session = Depends(get_db)):
    """Sign in with client name, phone and 4-digit PIN; sets the session cookie"""
    client_name = clean_optional(data.clientName)
    phone = digits_only(data.phone)

    if not client_name or not phone or not data.password:
        raise HTTPException(status_code=400, detail="모든 정보를 입력해주세요")

    if not is_valid_pin(data.password):
        raise HTTPException(status_code=400, detail="비밀번호는 4자리 숫자입니다")

    user = (
        db.query(User)
        .filter(User.client_name == client_name, User.phone == phone, User.is_active.is_(True))
        .first()
    )
    if not user:
        logger.warning(f"❌ Login failed: no account for client '{client_name}'")
        raise HTTPException(status_code=401, detail="등록된 정보를 찾을 수 없습니다")

    if not verify_password_bcrypt(data.password, user.password):
        logger.warning(f"❌ Login failed: wrong PIN for user {user.id}")
        raise HTTPException(status_code=401, detail="비밀번호가 일치하지 않습니다")

    user.last_login_at = datetime.utcnow()
    db.commit()

    max_age = timedelta(days=SESSION_MAX_AGE_DAYS)
    token = create_jwt_token(
        {
            "userId": user.id,
            "email": user.email,
            "name": user.name,
            "clientName": user.client_name,
            "type": "user",
        },
        expires_delta=max_age,
    )
    response.set_cookie(
        key=AUTH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=ENVIRONMENT == "production",
        samesite="lax",
        max_age=int(max_age.total_seconds()),
        path="/",
    )

    logger.info(f"✅ User {user.id} logged in")
    return {"success": True, "user": user_summary(user)}


@router.post("/logout")
async def logout(response: Response):
    response.delete_cookie(key=AUTH_COOKIE_NAME, path="/")
    return {"success": True}


@router.get("/me")
async def me(current_user: User = Depends(get_current_user)):
    return {
        "user": {
            "id": current_user.id,
            "clientName": current_user.client_name,
            "name": current_user.name,
            "email": current_user.email,
            "phone": current_user.phone,
        }
    }
