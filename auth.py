import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from bson import ObjectId
from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from pymongo.database import Database

from config import (
    ACCESS_TOKEN_EXPIRE_MINUTES,
    ACCESS_TOKEN_SECRET,
    REFRESH_TOKEN_EXPIRE_MINUTES,
    REFRESH_TOKEN_SECRET,
    TOKEN_ALGORITHM,
)
from database import get_db
from errors import Unauthorized
from utils import optional_objid
from views import AccountView

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
# Token is optional so anonymous readers reach the endpoints that allow them
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/users/login", auto_error=False)

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
COOKIE_OPTIONS = {"httponly": True, "secure": True}

PRIVATE_USER_FIELDS = ("password_hash", "refresh_token")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


def _encode(claims: dict, secret: str, minutes: int) -> str:
    to_encode = claims.copy()
    to_encode["exp"] = datetime.now(timezone.utc) + timedelta(minutes=minutes)
    return jwt.encode(to_encode, secret, algorithm=TOKEN_ALGORITHM)


def create_access_token(user: dict) -> str:
    return _encode(
        {
            "sub": str(user["_id"]),
            "email": user.get("email"),
            "username": user.get("username"),
            "full_name": user.get("full_name"),
            "type": "access",
        },
        ACCESS_TOKEN_SECRET,
        ACCESS_TOKEN_EXPIRE_MINUTES,
    )


def create_refresh_token(user_id) -> str:
    # jti keeps two tokens minted in the same second distinct
    return _encode(
        {"sub": str(user_id), "type": "refresh", "jti": uuid.uuid4().hex},
        REFRESH_TOKEN_SECRET,
        REFRESH_TOKEN_EXPIRE_MINUTES,
    )


def decode_token(token: str, secret: str = ACCESS_TOKEN_SECRET, token_type: str = "access") -> dict:
    try:
        payload = jwt.decode(token, secret, algorithms=[TOKEN_ALGORITHM])
    except JWTError:
        raise Unauthorized("Invalid or expired token")
    if payload.get("type") != token_type or not payload.get("sub"):
        raise Unauthorized("Invalid or expired token")
    return payload


def public_user(user: Optional[dict]) -> Optional[AccountView]:
    if not user:
        return None
    return AccountView.from_doc(user)


def _request_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    return request.cookies.get(ACCESS_COOKIE) or bearer


def get_current_user(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
    db: Database = Depends(get_db),
) -> dict:
    raw = _request_token(request, token)
    if not raw:
        raise Unauthorized("Unauthorized request")
    payload = decode_token(raw)
    user_id = optional_objid(payload["sub"])
    user = db["user"].find_one({"_id": user_id}, {p: 0 for p in PRIVATE_USER_FIELDS}) if user_id else None
    if not user:
        raise Unauthorized("Invalid access token")
    return user


def get_current_user_id(user: dict = Depends(get_current_user)) -> ObjectId:
    return user["_id"]


def get_optional_user_id(request: Request, token: Optional[str] = Depends(oauth2_scheme)) -> Optional[ObjectId]:
    """Viewer id for reads that allow anonymous access. A bad token reads as anonymous."""
    raw = _request_token(request, token)
    if not raw:
        return None
    try:
        payload = decode_token(raw)
    except Unauthorized:
        return None
    return optional_objid(payload["sub"])
