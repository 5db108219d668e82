"""
Journal schemas.

Pydantic models for request validation.
"""

from journal.schemas.user import *
from journal.schemas.todo import *
from journal.schemas.diary import *
