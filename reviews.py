from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field, field_validator

from advanced_results import Populate, advanced_results, populate
from aggregates import update_average_rating
from bootcamps import get_bootcamp_or_404
from database import create_document, find_by_id, get_db, serialize_doc
from schemas import Review as ReviewSchema, strip_text
from security import authorize, ensure_owner

router = APIRouter(tags=["reviews"])

BOOTCAMP = Populate(collection="bootcamp", local_field="bootcamp_id", into="bootcamp", select=["name", "description"])


# Request Models
class CreateReviewRequest(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=10)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)

class UpdateReviewRequest(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=100)
    text: Optional[str] = Field(None, min_length=1)
    rating: Optional[int] = Field(None, ge=1, le=10)

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)


def get_review_or_404(db, review_id: str):
    doc = find_by_id(db, "review", review_id)
    if not doc:
        raise HTTPException(status_code=404, detail=f"No review found with the id of {review_id}")
    return doc


@router.get("/reviews")
def list_reviews(request: Request, db=Depends(get_db)):
    return advanced_results(db, "review", request.query_params, model=ReviewSchema, populates=[BOOTCAMP])


@router.get("/bootcamps/{bootcamp_id}/reviews")
def list_bootcamp_reviews(bootcamp_id: str, db=Depends(get_db)):
    reviews = [serialize_doc(r) for r in db["review"].find({"bootcamp_id": bootcamp_id}).sort("created_at", -1)]
    return {"success": True, "count": len(reviews), "data": reviews}


@router.get("/reviews/{review_id}")
def get_review(review_id: str, db=Depends(get_db)):
    doc = get_review_or_404(db, review_id)
    populate(db, [doc], BOOTCAMP)
    return {"success": True, "data": serialize_doc(doc)}


@router.post("/bootcamps/{bootcamp_id}/reviews", status_code=201)
def add_review(
    bootcamp_id: str,
    payload: CreateReviewRequest,
    db=Depends(get_db),
    current_user=Depends(authorize("user", "admin")),
):
    bootcamp = get_bootcamp_or_404(db, bootcamp_id)
    # the unique (bootcamp_id, user_id) index rejects a second review
    doc = create_document(db, "review", ReviewSchema(
        **payload.model_dump(),
        bootcamp_id=str(bootcamp["_id"]),
        user_id=current_user["id"],
    ))
    update_average_rating(db, str(bootcamp["_id"]))
    return {"success": True, "data": serialize_doc(doc)}


@router.put("/reviews/{review_id}")
def update_review(
    review_id: str,
    payload: UpdateReviewRequest,
    db=Depends(get_db),
    current_user=Depends(authorize("user", "admin")),
):
    doc = get_review_or_404(db, review_id)
    ensure_owner(doc, current_user, "update this review")

    fields = payload.model_dump(exclude_none=True)
    if fields:
        db["review"].update_one({"_id": doc["_id"]}, {"$set": fields})
    return {"success": True, "data": serialize_doc(db["review"].find_one({"_id": doc["_id"]}))}


@router.delete("/reviews/{review_id}")
def delete_review(
    review_id: str,
    db=Depends(get_db),
    current_user=Depends(authorize("user", "admin")),
):
    doc = get_review_or_404(db, review_id)
    ensure_owner(doc, current_user, "delete this review")

    db["review"].delete_one({"_id": doc["_id"]})
    update_average_rating(db, doc["bootcamp_id"])
    return {"success": True, "data": {}}
