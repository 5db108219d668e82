"""
Pydantic models for todo requests.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

STATUS_PATTERN = r"^(todo|in-progress|done)$"
PRIORITY_PATTERN = r"^(low|medium|high)$"


class TodoCreateRequest(BaseModel):
    """Request body for creating a todo."""
    task: str = Field(..., min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    dueDate: Optional[datetime] = None
    status: str = Field(default="todo", pattern=STATUS_PATTERN, description="todo | in-progress | done")
    priority: str = Field(default="medium", pattern=PRIORITY_PATTERN, description="low | medium | high")


class TodoUpdateRequest(BaseModel):
    """Request body for updating a todo. Only provided fields change."""
    task: Optional[str] = Field(None, min_length=5, max_length=200)
    description: Optional[str] = Field(None, max_length=2000)
    dueDate: Optional[datetime] = None
    status: Optional[str] = Field(None, pattern=STATUS_PATTERN)
    priority: Optional[str] = Field(None, pattern=PRIORITY_PATTERN)
