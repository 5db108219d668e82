"""
Pydantic models for diary entry requests.
"""

from typing import List, Optional

from pydantic import BaseModel, Field

MOOD_PATTERN = r"^(happy|sad|neutral|excited|angry)$"
DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"


class ImageInput(BaseModel):
    """Reference to an image already uploaded to object storage."""
    key: str = Field(..., min_length=1)
    url: Optional[str] = None


class DiaryCreateRequest(BaseModel):
    """Request body for creating a diary entry."""
    title: str = Field(..., min_length=5, max_length=200)
    entry: str = Field(..., min_length=10)
    mood: str = Field(default="neutral", pattern=MOOD_PATTERN, description="happy | sad | neutral | excited | angry")
    images: List[ImageInput] = Field(default_factory=list)
    videos: List[str] = Field(default_factory=list)
    links: List[str] = Field(default_factory=list)
    date: Optional[str] = Field(None, pattern=DATE_PATTERN, description="YYYY-MM-DD, defaults to today")


class DiaryUpdateRequest(BaseModel):
    """Request body for updating a diary entry."""
    title: Optional[str] = Field(None, min_length=5, max_length=200)
    entry: Optional[str] = Field(None, min_length=10)
    mood: Optional[str] = Field(None, pattern=MOOD_PATTERN)
    images: Optional[List[ImageInput]] = None
    videos: Optional[List[str]] = None
    links: Optional[List[str]] = None
