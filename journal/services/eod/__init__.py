from journal.services.eod.eod_migrator import EndOfDayMigrator

__all__ = ["EndOfDayMigrator"]
