from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from advanced_results import Populate, advanced_results, populate
from aggregates import update_average_cost
from bootcamps import get_bootcamp_or_404
from database import create_document, find_by_id, get_db, serialize_doc
from schemas import Course as CourseSchema, strip_text
from security import authorize, ensure_owner

router = APIRouter(tags=["courses"])

BOOTCAMP = Populate(collection="bootcamp", local_field="bootcamp_id", into="bootcamp", select=["name", "description"])


# Request Models
class CreateCourseRequest(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    weeks: int = Field(..., ge=1)
    tuition: float = Field(..., ge=0)
    minimum_skill: Literal["beginner", "intermediate", "advanced"]
    scholarship_available: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)

class UpdateCourseRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    weeks: Optional[int] = Field(None, ge=1)
    tuition: Optional[float] = Field(None, ge=0)
    minimum_skill: Optional[Literal["beginner", "intermediate", "advanced"]] = None
    scholarship_available: Optional[bool] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)


def get_course_or_404(db, course_id: str):
    doc = find_by_id(db, "course", course_id)
    if not doc:
        raise HTTPException(status_code=404, detail=f"No course with the id of {course_id}")
    return doc


@router.get("/courses")
def list_courses(request: Request, db=Depends(get_db)):
    return advanced_results(db, "course", request.query_params, model=CourseSchema, populates=[BOOTCAMP])


@router.get("/bootcamps/{bootcamp_id}/courses")
def list_bootcamp_courses(bootcamp_id: str, db=Depends(get_db)):
    courses = [serialize_doc(c) for c in db["course"].find({"bootcamp_id": bootcamp_id}).sort("created_at", -1)]
    return {"success": True, "count": len(courses), "data": courses}


@router.get("/courses/{course_id}")
def get_course(course_id: str, db=Depends(get_db)):
    doc = get_course_or_404(db, course_id)
    populate(db, [doc], BOOTCAMP)
    return {"success": True, "data": serialize_doc(doc)}


@router.post("/bootcamps/{bootcamp_id}/courses", status_code=201)
def add_course(
    bootcamp_id: str,
    payload: CreateCourseRequest,
    db=Depends(get_db),
    current_user=Depends(authorize("publisher", "admin")),
):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    ensure_owner(bootcamp, current_user, f"add a course to bootcamp {bootcamp_id}")

    doc = create_document(db, "course", CourseSchema(
        **payload.model_dump(),
        bootcamp_id=str(bootcamp["_id"]),
        user_id=current_user["id"],
    ))
    update_average_cost(db, str(bootcamp["_id"]))
    return {"success": True, "data": serialize_doc(doc)}


@router.put("/courses/{course_id}")
def update_course(
    course_id: str,
    payload: UpdateCourseRequest,
    db=Depends(get_db),
    current_user=Depends(authorize("publisher", "admin")),
):
    doc = get_course_or_404(db, course_id)
    ensure_owner(doc, current_user, f"update course {course_id}")

    fields = payload.model_dump(exclude_none=True)
    # tuition edits leave average_cost untouched until the next create/delete
    if fields:
        db["course"].update_one({"_id": doc["_id"]}, {"$set": fields})
    return {"success": True, "data": serialize_doc(db["course"].find_one({"_id": doc["_id"]}))}


@router.delete("/courses/{course_id}")
def delete_course(
    course_id: str,
    db=Depends(get_db),
    current_user=Depends(authorize("publisher", "admin")),
):
    doc = get_course_or_404(db, course_id)
    ensure_owner(doc, current_user, f"delete course {course_id}")

    db["course"].delete_one({"_id": doc["_id"]})
    update_average_cost(db, doc["bootcamp_id"])
    return {"success": True, "data": {}}
