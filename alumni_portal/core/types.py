"""Custom SQLAlchemy types for cross-database compatibility"""
from sqlalchemy import TypeDecorator, String
import uuid


def generate_uuid():
    """Generate a UUID string"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """Platform-independent GUID type that stores UUIDs as VARCHAR(36)"""
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value


def is_valid_uuid(value: str) -> bool:
    """Check that a path/query value looks like a UUID before hitting the database"""
    try:
        uuid.UUID(str(value))
    except (ValueError, TypeError):
        return False
    return True
