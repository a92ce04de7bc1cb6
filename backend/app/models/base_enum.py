# backend/app/models/base_enum.py
"""
Safe enum helpers for SQLAlchemy.

SQLAlchemy's ``Enum`` type stores member NAMES by default ('CONFIRMED'),
while the conditional UPDATE statements in the repositories and the Alembic
migration use VALUES ('confirmed'). Columns built with ``create_safe_enum``
persist values so both paths agree.

Usage:
    from app.models.base_enum import create_safe_enum

    class Booking(Base):
        status = Column(
            create_safe_enum(BookingStatus, "booking_status"),
            nullable=False,
            default=BookingStatus.PENDING,
        )

All Python enums for database storage inherit from (str, Enum) with explicit
lowercase values.
"""

from enum import Enum
from typing import Sequence, Type

from sqlalchemy import Enum as SAEnum


def create_safe_enum(
    enum_class: Type[Enum],
    name: str,
    *,
    native_enum: bool = False,
    length: int = 20,
) -> SAEnum:
    """
    Create a SQLAlchemy Enum that stores enum values (not names).

    Args:
        enum_class: The Python Enum class to use
        name: Type / constraint name
        native_enum: Use a PostgreSQL native enum type (default False, stored as VARCHAR)
        length: VARCHAR length for non-native storage

    Returns:
        SQLAlchemy Enum column type configured for value-based storage
    """
    return SAEnum(
        enum_class,
        name=name,
        native_enum=native_enum,
        length=length,
        validate_strings=True,
        values_callable=_get_enum_values,
    )


def _get_enum_values(enum_class: Type[Enum]) -> Sequence[str]:
    return [member.value for member in enum_class]
