from journal.services.user.user_service import UserService, format_user, to_object_id

__all__ = ["UserService", "format_user", "to_object_id"]
