"""
Pipelines for user profile management.

Turn validated request bodies into dotted ``$set`` updates on the user
document.
"""

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Dict

from common.utils.exceptions import ValidationException
from common.utils.timezones import is_valid_timezone
from journal.services.user import UserService, format_user

logger = logging.getLogger(__name__)

PROFILE_FIELDS = ("name", "bio", "dob")
SETTINGS_FIELDS = ("theme", "notifications", "timezone")


def _check_timezone(name: str) -> None:
    if not is_valid_timezone(name):
        raise ValidationException(
            message=f"Invalid timezone '{name}'",
            code="INVALID_TIMEZONE"
        )


def _storable(value: Any) -> Any:
    # BSON has no plain date type
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min, tzinfo=timezone.utc)
    return value


def build_profile_updates(fields: Dict[str, Any]) -> Dict[str, Any]:
    """
    Map flat profile/settings fields to dotted paths.

    Args:
        fields: Any of name, bio, dob, theme, notifications, timezone

    Returns:
        ``$set`` mapping on the user document

    Raises:
        ValidationException: Unknown timezone
    """
    updates: Dict[str, Any] = {}

    for key in PROFILE_FIELDS:
        if key in fields:
            updates[f"profile.{key}"] = _storable(fields[key])

    for key in SETTINGS_FIELDS:
        if key in fields and fields[key] is not None:
            if key == "timezone":
                _check_timezone(fields[key])
            updates[f"profile.settings.{key}"] = fields[key]

    return updates


async def update_me_pipeline(
    user_service: UserService,
    user_id: str,
    body: Dict[str, Any],
) -> dict:
    """
    Update username and/or nested profile.

    Args:
        user_service: User service
        user_id: Current user's ID
        body: ``UpdateMeRequest`` dumped with ``exclude_unset``

    Returns:
        Formatted updated user
    """
    updates: Dict[str, Any] = {}
    if body.get("username"):
        updates["username"] = body["username"].strip()

    profile = dict(body.get("profile") or {})
    settings = profile.pop("settings", None) or {}
    updates.update(build_profile_updates({**profile, **settings}))

    if not updates:
        user = await user_service.require_user(user_id)
        return format_user(user)

    user = await user_service.update_user(user_id, updates)
    return format_user(user)


async def update_profile_pipeline(
    user_service: UserService,
    user_id: str,
    fields: Dict[str, Any],
) -> dict:
    """
    Apply a flat profile update and mark the profile as completed.

    Returns:
        Formatted updated user
    """
    updates = build_profile_updates(fields)
    updates["profileCompleted"] = True

    user = await user_service.update_user(user_id, updates)
    logger.info(f"Profile updated for user {user_id}")
    return format_user(user)
