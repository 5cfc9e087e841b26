import hashlib
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Tuple

from bson.errors import InvalidId
from fastapi import Cookie, Depends, HTTPException
from fastapi.responses import JSONResponse
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext

from database import get_db, serialize_doc, to_object_id
from schemas import USER_PRIVATE_FIELDS
from settings import (
    JWT_ALGORITHM,
    JWT_COOKIE_EXPIRE_DAYS,
    JWT_EXPIRE_MINUTES,
    JWT_SECRET,
    RESET_TOKEN_EXPIRE_MINUTES,
    is_production,
)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login", auto_error=False)

NOT_AUTHORIZED = "Not authorized to access this route"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=JWT_EXPIRE_MINUTES))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET, algorithm=JWT_ALGORITHM)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def generate_reset_token() -> Tuple[str, str, datetime]:
    """Return (plain token, sha256 of it, expiry). Only the hash is stored."""
    token = secrets.token_hex(20)
    expire = datetime.now(timezone.utc) + timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES)
    return token, hash_reset_token(token), expire


def public_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    return serialize_doc(doc, hidden=USER_PRIVATE_FIELDS)


def send_token_response(user: Dict[str, Any], status_code: int = 200) -> JSONResponse:
    user_id = str(user.get("_id") or user.get("id"))
    token = create_access_token({"sub": user_id})
    response = JSONResponse(status_code=status_code, content={"success": True, "token": token})
    response.set_cookie(
        key="token",
        value=token,
        max_age=JWT_COOKIE_EXPIRE_DAYS * 24 * 60 * 60,
        httponly=True,
        secure=is_production(),
    )
    return response


def get_current_user(
    bearer: Optional[str] = Depends(oauth2_scheme),
    cookie_token: Optional[str] = Cookie(None, alias="token"),
    db=Depends(get_db),
):
    credentials_exception = HTTPException(status_code=401, detail=NOT_AUTHORIZED)
    token = bearer or cookie_token
    if not token:
        raise credentials_exception
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
        user_id: str = payload.get("sub")
        if user_id is None:
            raise credentials_exception
        user = db["user"].find_one({"_id": to_object_id(user_id)})
    except (JWTError, InvalidId):
        raise credentials_exception
    if not user:
        raise credentials_exception
    return public_user(user)


def authorize(*roles: str):
    def role_dep(current_user=Depends(get_current_user)):
        if current_user.get("role") not in roles:
            raise HTTPException(
                status_code=403,
                detail=f"User role '{current_user.get('role')}' is not authorized to access this route",
            )
        return current_user
    return role_dep


def ensure_owner(doc: Dict[str, Any], current_user: Dict[str, Any], what: str) -> None:
    if doc.get("user_id") != current_user["id"] and current_user.get("role") != "admin":
        raise HTTPException(
            status_code=403,
            detail=f"User {current_user['id']} is not authorized to {what}",
        )
