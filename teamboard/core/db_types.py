"""
Database type compatibility layer for SQLite/PostgreSQL
"""
import uuid

from sqlalchemy import Column
from sqlalchemy.dialects.postgresql import UUID as PostgresUUID
from sqlalchemy.types import TypeDecorator, CHAR


class GUID(TypeDecorator):
    """Platform-independent UUID type.

    Native UUID on PostgreSQL, CHAR(36) everywhere else. Values always come
    back as ``uuid.UUID``; strings are accepted on the way in so ids taken
    straight from a URL path or header can be bound without conversion.
    """
    impl = CHAR
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(PostgresUUID(as_uuid=True))
        return dialect.type_descriptor(CHAR(36))

    def process_bind_param(self, value, dialect):
        if value is None:
            return value
        if not isinstance(value, uuid.UUID):
            value = uuid.UUID(str(value))
        if dialect.name == 'postgresql':
            return value
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, uuid.UUID):
            return value
        return uuid.UUID(value)


def guid_pk() -> Column:
    """UUID primary key column with a client-side default"""
    return Column(GUID(), primary_key=True, default=uuid.uuid4)


def as_uuid(value):
    """Coerce an id received from a caller; returns None when it is not a UUID"""
    if value is None or isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except ValueError:
        return None


__all__ = ['GUID', 'guid_pk', 'as_uuid']
