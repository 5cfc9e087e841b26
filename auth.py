from datetime import datetime, timezone
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr, Field

from database import create_document, get_db, to_object_id
from logging_setup import get_logger
from mailer import EmailError, get_mailer
from schemas import User as UserSchema
from security import (
    generate_reset_token,
    get_current_user,
    hash_password,
    hash_reset_token,
    public_user,
    send_token_response,
    verify_password,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


# Request Models
class RegisterRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Literal["user", "publisher"] = "user"

class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None

class UpdateDetailsRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None

class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str = Field(..., min_length=6)

class ForgotPasswordRequest(BaseModel):
    email: EmailStr

class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6)


@router.post("/register")
def register(payload: RegisterRequest, db=Depends(get_db)):
    user_doc = create_document(db, "user", UserSchema(
        name=payload.name,
        email=payload.email,
        role=payload.role,
        password_hash=hash_password(payload.password),
    ))
    logger.info("user_registered", user_id=str(user_doc["_id"]), role=payload.role)
    return send_token_response(user_doc)


@router.post("/login")
def login(payload: LoginRequest, db=Depends(get_db)):
    if not payload.email or not payload.password:
        raise HTTPException(status_code=400, detail="Please provide an email and password")
    user = db["user"].find_one({"email": payload.email})
    # same answer for unknown email and wrong password
    if not user or not verify_password(payload.password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return send_token_response(user)


@router.get("/logout")
def logout():
    response = JSONResponse(content={"success": True, "data": {}})
    response.set_cookie(key="token", value="none", max_age=10, httponly=True)
    return response


@router.get("/me")
def me(current_user=Depends(get_current_user)):
    return {"success": True, "data": current_user}


@router.put("/updatedetails")
def update_details(payload: UpdateDetailsRequest, current_user=Depends(get_current_user), db=Depends(get_db)):
    fields = payload.model_dump(exclude_none=True)
    if fields:
        db["user"].update_one({"_id": to_object_id(current_user["id"])}, {"$set": fields})
    user = db["user"].find_one({"_id": to_object_id(current_user["id"])})
    return {"success": True, "data": public_user(user)}


@router.put("/updatepassword")
def update_password(payload: UpdatePasswordRequest, current_user=Depends(get_current_user), db=Depends(get_db)):
    user = db["user"].find_one({"_id": to_object_id(current_user["id"])})
    if not verify_password(payload.current_password, user.get("password_hash", "")):
        raise HTTPException(status_code=401, detail="Password is incorrect")
    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {"password_hash": hash_password(payload.new_password)}},
    )
    return send_token_response(user)


@router.post("/forgotpassword")
def forgot_password(
    payload: ForgotPasswordRequest,
    request: Request,
    db=Depends(get_db),
    send_email=Depends(get_mailer),
):
    user = db["user"].find_one({"email": payload.email})
    if not user:
        raise HTTPException(status_code=404, detail="There is no user with that email")

    token, token_hash, expire = generate_reset_token()
    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {"reset_password_token": token_hash, "reset_password_expire": expire}},
    )

    reset_url = f"{str(request.base_url).rstrip('/')}/api/v1/auth/resetpassword/{token}"
    message = (
        "You are receiving this email because you (or someone else) has requested the reset "
        f"of a password. Please make a PUT request to:\n\n{reset_url}"
    )
    try:
        send_email(user["email"], "Password reset token", message)
    except EmailError as e:
        logger.error("reset_email_failed", user_id=str(user["_id"]), error=str(e))
        db["user"].update_one(
            {"_id": user["_id"]},
            {"$set": {"reset_password_token": None, "reset_password_expire": None}},
        )
        raise HTTPException(status_code=500, detail="Email could not be sent")
    return {"success": True, "data": "Email sent"}


@router.put("/resetpassword/{reset_token}")
def reset_password(reset_token: str, payload: ResetPasswordRequest, db=Depends(get_db)):
    user = db["user"].find_one({"reset_password_token": hash_reset_token(reset_token)})
    expire = user.get("reset_password_expire") if user else None
    if expire is not None and expire.tzinfo is None:
        expire = expire.replace(tzinfo=timezone.utc)
    if not user or expire is None or expire <= datetime.now(timezone.utc):
        raise HTTPException(status_code=400, detail="Invalid token")

    db["user"].update_one(
        {"_id": user["_id"]},
        {"$set": {
            "password_hash": hash_password(payload.password),
            "reset_password_token": None,
            "reset_password_expire": None,
        }},
    )
    return send_token_response(user)
