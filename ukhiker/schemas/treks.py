from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator

REQUIRED_TREK_FIELDS = ("title", "location", "image_url")


def _naive_utc(v: Optional[datetime]) -> Optional[datetime]:
    """Dates are stored as naive UTC; an offset-less input is taken as UTC."""
    if v is not None and v.tzinfo is not None:
        v = v.astimezone(timezone.utc).replace(tzinfo=None)
    return v


class TrekCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)
    title: str = Field(..., min_length=1, max_length=200)
    location: str = Field(..., min_length=1, max_length=200)
    image_url: str = Field(..., alias="imageUrl", min_length=1, max_length=500)
    pdf_url: Optional[str] = Field(None, alias="pdfUrl", max_length=500)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    difficulty: Optional[str] = Field(None, max_length=40)
    date: Optional[datetime] = None

    @field_validator("title", "location", "image_url")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("date")
    @classmethod
    def _date_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class TrekUpdate(BaseModel):
    """Partial update: only fields present in the request body are applied."""
    model_config = ConfigDict(populate_by_name=True)
    title: Optional[str] = Field(None, max_length=200)
    location: Optional[str] = Field(None, max_length=200)
    image_url: Optional[str] = Field(None, alias="imageUrl", max_length=500)
    pdf_url: Optional[str] = Field(None, alias="pdfUrl", max_length=500)
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    difficulty: Optional[str] = Field(None, max_length=40)
    date: Optional[datetime] = None

    @field_validator("date")
    @classmethod
    def _date_to_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return _naive_utc(v)


class TrekResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: str
    title: str
    location: str
    image_url: str = Field(..., alias="imageUrl")
    pdf_url: Optional[str] = Field(None, alias="pdfUrl")
    description: Optional[str] = None
    price: Optional[float] = None
    difficulty: Optional[str] = None
    date: Optional[datetime] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")
    updated_at: Optional[datetime] = Field(None, alias="updatedAt")

    @field_validator("date", "created_at", "updated_at")
    @classmethod
    def _as_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        # columns come back naive from the database
        if v is not None and v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        return v


class TrekSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True, populate_by_name=True)
    id: str
    title: str
    location: str
    image_url: str = Field(..., alias="imageUrl")
