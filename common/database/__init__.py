"""
Database module - async MongoDB connection via Motor.

Usage:
    from common.database import MongoDB

    db = MongoDB()
    await db.connect(uri, database_name, indexes)

    users = db.db["users"]
"""

from common.database.mongodb import MongoDB

__all__ = ["MongoDB"]
