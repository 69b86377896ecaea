# app/core/security.py

from datetime import datetime, timedelta, timezone
from typing import Optional

from passlib.context import CryptContext
from jose import jwt, JWTError, ExpiredSignatureError

from app.core.config import (
    JWT_ACCESS_SECRET_KEY,
    JWT_ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES,
)
from app.core.exceptions import AppException
from app.constants.error_codes import ErrorCode
from app.utils.logger import get_logger

logger = get_logger("auth.tokens")

TOKEN_TYPE_ACCESS = "access"

# =====================================================
# PASSWORD HASHING
# =====================================================
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


# =====================================================
# ACCESS TOKEN
# =====================================================
def create_access_token(
    subject: str,
    token_version: int,
    company_id: Optional[int],
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Sign a bearer token for `subject` (the username).

    `token_version` is bumped on logout, which invalidates every token issued
    before it; `company_id` pins the token to the tenant it was issued for.
    """
    issued_at = datetime.now(timezone.utc)
    lifetime = expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    claims = {
        "sub": subject,
        "token_version": token_version,
        "company_id": company_id,
        "type": TOKEN_TYPE_ACCESS,
        "iat": issued_at,
        "exp": issued_at + lifetime,
    }
    return jwt.encode(claims, JWT_ACCESS_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        claims = jwt.decode(token, JWT_ACCESS_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise AppException(401, "Session expired", ErrorCode.SESSION_EXPIRED)
    except JWTError as exc:
        logger.warning("Rejected bearer token", extra={"reason": str(exc)})
        raise AppException(401, "Invalid token", ErrorCode.UNAUTHORIZED)

    if claims.get("type") != TOKEN_TYPE_ACCESS or not claims.get("sub"):
        logger.warning("Rejected bearer token", extra={"reason": "wrong token type"})
        raise AppException(401, "Invalid token", ErrorCode.UNAUTHORIZED)

    return claims
