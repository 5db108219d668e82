"""
Utilities module - Common helpers for API responses, exceptions, and timezones.
"""

from common.utils.responses import success_response, error_response, list_response
from common.utils.exceptions import (
    APIException,
    BadRequestException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ValidationException,
)
from common.utils.timezones import (
    local_date_string,
    is_local_midnight,
    local_day_bounds,
    is_valid_timezone,
)

__all__ = [
    "success_response",
    "error_response",
    "list_response",
    "APIException",
    "BadRequestException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ValidationException",
    "local_date_string",
    "is_local_midnight",
    "local_day_bounds",
    "is_valid_timezone",
]
