"""
Database Schemas for the DevCamper API

MongoDB collections are defined below using Pydantic models. Each class name is
converted to lowercase for the collection name (Bootcamp -> "bootcamp").

We will use these collections:
- bootcamp: coding schools, with derived average cost and rating
- course: courses offered by a bootcamp
- review: one review per user per bootcamp
- user: accounts (user, publisher, admin)
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator
from slugify import slugify

Role = Literal["user", "publisher", "admin"]
Skill = Literal["beginner", "intermediate", "advanced"]
Career = Literal[
    "Web Development",
    "Mobile Development",
    "UI/UX",
    "Data Science",
    "Business",
    "Other",
]

URL_PATTERN = r"^https?://(www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b([-a-zA-Z0-9()@:%_+.~#?&/=]*)$"


def make_slug(name: str) -> str:
    return slugify(name, lowercase=True)


def strip_text(value):
    # runs before length checks so blank input fails min_length
    return value.strip() if isinstance(value, str) else value


class Location(BaseModel):
    """GeoJSON point plus the geocoder's address components."""
    type: Literal["Point"] = "Point"
    coordinates: List[float] = Field(..., min_length=2, max_length=2, description="[longitude, latitude]")
    formatted_address: Optional[str] = None
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zipcode: Optional[str] = None
    country: Optional[str] = None


class Bootcamp(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)
    slug: Optional[str] = None
    description: str = Field(..., min_length=1, max_length=500)
    website: Optional[str] = Field(None, pattern=URL_PATTERN)
    phone: Optional[str] = Field(None, max_length=20)
    email: Optional[EmailStr] = None
    address: str = Field(..., min_length=1)
    location: Optional[Location] = None
    careers: List[Career] = Field(..., min_length=1)
    average_rating: Optional[float] = Field(None, ge=1, le=10, description="Derived from reviews")
    average_cost: Optional[float] = Field(None, description="Derived from course tuition")
    photo: str = "no-photo.jpg"
    housing: bool = False
    job_assistance: bool = False
    job_guarantee: bool = False
    accept_gi: bool = False
    user_id: str = Field(..., description="Reference to user _id (owner)")

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return strip_text(v)


class Course(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    weeks: int = Field(..., ge=1)
    tuition: float = Field(..., ge=0)
    minimum_skill: Skill
    scholarship_available: bool = False
    bootcamp_id: str = Field(..., description="Reference to bootcamp _id")
    user_id: str = Field(..., description="Reference to user _id")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)


class Review(BaseModel):
    title: str = Field(..., min_length=1, max_length=100)
    text: str = Field(..., min_length=1)
    rating: int = Field(..., ge=1, le=10)
    bootcamp_id: str = Field(..., description="Reference to bootcamp _id")
    user_id: str = Field(..., description="Reference to user _id")

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return strip_text(v)


class User(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    role: Role = Field("user")
    password_hash: str = Field(..., description="BCrypt hash of password")
    reset_password_token: Optional[str] = None
    reset_password_expire: Optional[datetime] = None


# Never sent back to clients
USER_PRIVATE_FIELDS = ("password_hash", "reset_password_token", "reset_password_expire")
