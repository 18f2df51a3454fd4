"""Custom column types."""

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator


class Uint256(TypeDecorator):
    """Unbounded non-negative integer stored as a decimal string.

    SQLite INTEGER tops out at 2**63 - 1 and NUMERIC silently falls back to
    REAL, so token amounts and WAD scalars are kept as text and converted
    back to Python ints on load.
    """

    impl = String(78)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = int(value)
        if value < 0:
            raise ValueError(f"Uint256 column cannot store negative value {value}")
        return str(value)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


__all__ = ["Uint256"]
