"""
Personal journal API: users, todos, diary entries and the end-of-day
todo migration.
"""
