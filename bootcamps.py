import os
from typing import List, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel, EmailStr, Field, field_validator

from advanced_results import Populate, advanced_results, populate
from database import create_document, find_by_id, get_db, serialize_doc, to_object_id
from geo import bootcamps_in_radius
from geocoder import get_geocoder, to_location
from logging_setup import get_logger
from schemas import URL_PATTERN, Bootcamp as BootcampSchema, Career, make_slug, strip_text
from security import authorize, ensure_owner
from settings import FILE_UPLOAD_PATH, MAX_FILE_UPLOAD

logger = get_logger(__name__)

router = APIRouter(prefix="/bootcamps", tags=["bootcamps"])

COURSES = Populate(collection="course", local_field="_id", foreign_field="bootcamp_id", into="courses", many=True)


# Request Models
class CreateBootcampRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    description: str = Field(..., min_length=1, max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: str = Field(..., min_length=1)
    careers: List[Career] = Field(..., min_length=1)
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return strip_text(v)

class UpdateBootcampRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=50)
    description: Optional[str] = Field(None, min_length=1, max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: Optional[str] = Field(None, min_length=1)
    careers: Optional[List[Career]] = Field(None, min_length=1)
    housing: Optional[bool] = None
    job_assistance: Optional[bool] = None
    job_guarantee: Optional[bool] = None
    accept_gi: Optional[bool] = None

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return strip_text(v)


def get_bootcamp_or_404(db, bootcamp_id: str):
    doc = find_by_id(db, "bootcamp", bootcamp_id)
    if not doc:
        raise HTTPException(status_code=404, detail=f"Bootcamp not found with id of {bootcamp_id}")
    return doc


@router.get("")
def list_bootcamps(request: Request, db=Depends(get_db)):
    return advanced_results(db, "bootcamp", request.query_params, model=BootcampSchema, populates=[COURSES])


@router.get("/radius/{zipcode}/{distance}")
def bootcamps_within(zipcode: str, distance: float, db=Depends(get_db), geocoder=Depends(get_geocoder)):
    docs = [serialize_doc(d) for d in bootcamps_in_radius(db, geocoder, zipcode, distance)]
    return {"success": True, "count": len(docs), "data": docs}


@router.get("/{bootcamp_id}")
def get_bootcamp(bootcamp_id: str, db=Depends(get_db)):
    doc = get_bootcamp_or_404(db, bootcamp_id)
    populate(db, [doc], COURSES)
    return {"success": True, "data": serialize_doc(doc)}


@router.post("", status_code=201)
def create_bootcamp(
    payload: CreateBootcampRequest,
    db=Depends(get_db),
    geocoder=Depends(get_geocoder),
    current_user=Depends(authorize("publisher", "admin")),
):
    # publishers get a single bootcamp, admins any number
    if current_user["role"] != "admin" and db["bootcamp"].find_one({"user_id": current_user["id"]}):
        raise HTTPException(
            status_code=400,
            detail=f"The user with ID {current_user['id']} has already published a bootcamp",
        )

    bootcamp = BootcampSchema(
        **payload.model_dump(),
        location=to_location(geocoder.geocode(payload.address)),
        user_id=current_user["id"],
    )
    bootcamp.slug = make_slug(bootcamp.name)
    doc = create_document(db, "bootcamp", bootcamp)
    logger.info("bootcamp_created", bootcamp_id=str(doc["_id"]), user_id=current_user["id"])
    return {"success": True, "data": serialize_doc(doc)}


@router.put("/{bootcamp_id}")
def update_bootcamp(
    bootcamp_id: str,
    payload: UpdateBootcampRequest,
    db=Depends(get_db),
    geocoder=Depends(get_geocoder),
    current_user=Depends(authorize("publisher", "admin")),
):
    doc = get_bootcamp_or_404(db, bootcamp_id)
    ensure_owner(doc, current_user, "update this bootcamp")

    fields = payload.model_dump(exclude_none=True)
    if "name" in fields:
        fields["slug"] = make_slug(fields["name"])
    if "address" in fields and fields["address"] != doc.get("address"):
        fields["location"] = to_location(geocoder.geocode(fields["address"]))
    if fields:
        db["bootcamp"].update_one({"_id": doc["_id"]}, {"$set": fields})
    return {"success": True, "data": serialize_doc(db["bootcamp"].find_one({"_id": doc["_id"]}))}


@router.delete("/{bootcamp_id}")
def delete_bootcamp(
    bootcamp_id: str,
    db=Depends(get_db),
    current_user=Depends(authorize("publisher", "admin")),
):
    doc = get_bootcamp_or_404(db, bootcamp_id)
    ensure_owner(doc, current_user, "delete this bootcamp")

    bootcamp_ref = str(doc["_id"])
    courses = db["course"].delete_many({"bootcamp_id": bootcamp_ref})
    reviews = db["review"].delete_many({"bootcamp_id": bootcamp_ref})
    db["bootcamp"].delete_one({"_id": doc["_id"]})
    logger.info(
        "bootcamp_deleted",
        bootcamp_id=bootcamp_ref,
        courses_removed=courses.deleted_count,
        reviews_removed=reviews.deleted_count,
    )
    return {"success": True, "data": {}}


@router.put("/{bootcamp_id}/photo")
def upload_bootcamp_photo(
    bootcamp_id: str,
    file: Optional[UploadFile] = File(None),
    db=Depends(get_db),
    current_user=Depends(authorize("publisher", "admin")),
):
    doc = get_bootcamp_or_404(db, bootcamp_id)
    ensure_owner(doc, current_user, "update this bootcamp")

    if file is None:
        raise HTTPException(status_code=400, detail="Please upload a file")
    if not (file.content_type or "").startswith("image"):
        raise HTTPException(status_code=400, detail="Please upload an image file")
    content_bytes = file.file.read()
    if len(content_bytes) > MAX_FILE_UPLOAD:
        raise HTTPException(status_code=400, detail=f"Please upload an image less than {MAX_FILE_UPLOAD}")

    _, ext = os.path.splitext(file.filename or "")
    filename = f"photo_{doc['_id']}{ext}"
    os.makedirs(FILE_UPLOAD_PATH, exist_ok=True)
    with open(os.path.join(FILE_UPLOAD_PATH, filename), "wb") as f:
        f.write(content_bytes)

    db["bootcamp"].update_one({"_id": to_object_id(bootcamp_id)}, {"$set": {"photo": filename}})
    logger.info("bootcamp_photo_uploaded", bootcamp_id=bootcamp_id, filename=filename, size=len(content_bytes))
    return {"success": True, "data": filename}
