from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, EmailStr, Field

from advanced_results import advanced_results
from database import create_document, find_by_id, get_db
from schemas import USER_PRIVATE_FIELDS, Role, User as UserSchema
from security import authorize, hash_password, public_user

# Admin only
router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(authorize("admin"))])


# Request Models
class CreateUserRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = "user"

class UpdateUserRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=6)
    role: Optional[Role] = None


def get_user_or_404(db, user_id: str):
    doc = find_by_id(db, "user", user_id)
    if not doc:
        raise HTTPException(status_code=404, detail=f"No user with the id of {user_id}")
    return doc


@router.get("")
def list_users(request: Request, db=Depends(get_db)):
    return advanced_results(db, "user", request.query_params, model=UserSchema, hidden=USER_PRIVATE_FIELDS)


@router.get("/{user_id}")
def get_user(user_id: str, db=Depends(get_db)):
    return {"success": True, "data": public_user(get_user_or_404(db, user_id))}


@router.post("", status_code=201)
def create_user(payload: CreateUserRequest, db=Depends(get_db)):
    doc = create_document(db, "user", UserSchema(
        name=payload.name,
        email=payload.email,
        role=payload.role,
        password_hash=hash_password(payload.password),
    ))
    return {"success": True, "data": public_user(doc)}


@router.put("/{user_id}")
def update_user(user_id: str, payload: UpdateUserRequest, db=Depends(get_db)):
    doc = get_user_or_404(db, user_id)
    fields = payload.model_dump(exclude_none=True)
    if "password" in fields:
        fields["password_hash"] = hash_password(fields.pop("password"))
    if fields:
        db["user"].update_one({"_id": doc["_id"]}, {"$set": fields})
    return {"success": True, "data": public_user(db["user"].find_one({"_id": doc["_id"]}))}


@router.delete("/{user_id}")
def delete_user(user_id: str, db=Depends(get_db)):
    doc = get_user_or_404(db, user_id)
    db["user"].delete_one({"_id": doc["_id"]})
    return {"success": True, "data": {}}
