from journal.services.diary.diary_service import (
    DiaryService,
    format_entry,
    format_entry_summary,
    VALID_MOODS,
)

__all__ = ["DiaryService", "format_entry", "format_entry_summary", "VALID_MOODS"]
