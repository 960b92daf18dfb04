import logging
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Header
from jose import JWTError, jwt
from passlib.context import CryptContext

from database import get_db
from errors import Unauthorized
from utils import to_object_id

logger = logging.getLogger(__name__)

# Security/JWT
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
JWT_ALG = "HS256"
JWT_EXPIRE_DAYS = int(os.getenv("JWT_EXPIRE_DAYS", "7"))
ADMIN_ROLE = 1

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password_hash:
        return False
    return pwd_context.verify(password, password_hash)


def create_token(user: dict) -> str:
    payload = {
        "sub": str(user["_id"]),
        "exp": datetime.now(timezone.utc) + timedelta(days=JWT_EXPIRE_DAYS),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)


def get_current_user(authorization: Optional[str] = Header(None), database=Depends(get_db)):
    if not authorization:
        logger.info("Request without Authorization header")
        raise Unauthorized("Unauthorized")
    token = authorization.replace("Bearer ", "").strip()
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError:
        logger.info("Rejected invalid token")
        raise Unauthorized("Unauthorized")
    user = database["user"].find_one({"_id": to_object_id(payload.get("sub"))})
    if not user:
        logger.info("Token subject %s has no user", payload.get("sub"))
        raise Unauthorized("Unauthorized")
    return user


def require_admin(user=Depends(get_current_user)):
    if user.get("role") != ADMIN_ROLE:
        logger.warning("Non-admin user %s tried an admin route", user.get("_id"))
        raise Unauthorized("UnAuthorized Access")
    return user
