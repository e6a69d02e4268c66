import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .config import AUTH_COOKIE_NAME
from .database import get_db
from .models import User
from .security_utils import verify_jwt_token

logger = logging.getLogger(__name__)


def get_session_claims(request: Request) -> Optional[dict]:
    """Read and verify the session cookie. Returns the token claims or None."""
    token = request.cookies.get(AUTH_COOKIE_NAME)
    if not token:
        return None
    return verify_jwt_token(token)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """
    Resolve the signed-in customer from the auth-token cookie.
    Admin tokens are rejected here; user routes only accept type "user".
    """
    claims = get_session_claims(request)
    if not claims:
        raise HTTPException(status_code=401, detail="인증이 필요합니다")

    if claims.get("type") != "user":
        logger.warning(f"❌ Rejected non-user token on {request.url.path}")
        raise HTTPException(status_code=401, detail="인증이 필요합니다")

    user = db.query(User).filter(User.id == claims.get("userId"), User.is_active.is_(True)).first()
    if not user:
        logger.warning(f"❌ Token references missing or inactive user {claims.get('userId')}")
        raise HTTPException(status_code=401, detail="인증이 필요합니다")

    return user
