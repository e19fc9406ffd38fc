from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.types import JSON
from sqlalchemy import TypeDecorator


class JSONVariant(TypeDecorator):
    """A type decorator that selects the appropriate JSON type based on the database dialect."""
    impl = JSON
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == 'postgresql':
            return dialect.type_descriptor(JSONB)
        return dialect.type_descriptor(JSON)
