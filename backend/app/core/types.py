"""Custom SQLAlchemy types for cross-database compatibility"""
import json
import uuid

from sqlalchemy import TypeDecorator, String, Text


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


class StringList(TypeDecorator):
    """List of strings stored as a JSON array in a TEXT column.

    Order is preserved and duplicates are dropped on write.
    """
    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return json.dumps([])
        seen = []
        for item in value:
            item = str(item)
            if item not in seen:
                seen.append(item)
        return json.dumps(seen)

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return list(json.loads(value))
