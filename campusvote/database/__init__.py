from campusvote.database.connection import Database, to_object_id, utcnow

__all__ = ["Database", "to_object_id", "utcnow"]
