"""SQLModel RegistrationRecord model"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, DateTime, Text
from sqlmodel import Field, SQLModel

REGISTRATIONS_TABLE = "registrations"


def new_registration_id() -> str:
    """Generate a canonical lowercase UUID string for a new record"""
    return str(uuid.uuid4())


class RegistrationRecord(SQLModel, table=True):
    """A persisted paper-form registration.

    Base columns keep the camelCase names used by stores created before the
    receipt preference columns were introduced; the later columns are
    snake_case. Python attributes are snake_case throughout.
    """

    __tablename__ = REGISTRATIONS_TABLE

    id: str = Field(
        default_factory=new_registration_id,
        sa_column=Column("id", Text, primary_key=True),
    )
    reference_number: str = Field(
        sa_column=Column("referenceNumber", Text, nullable=False, unique=True)
    )
    form_type: str = Field(sa_column=Column("formType", Text, nullable=False))
    form_type_other_text: Optional[str] = Field(
        default=None, sa_column=Column("formTypeOtherText", Text, nullable=True)
    )
    pen_colour_not_used: str = Field(
        sa_column=Column("penColourNotUsed", Text, nullable=False)
    )
    guidance_read: str = Field(sa_column=Column("guidanceRead", Text, nullable=False))
    receipt_preference: Optional[str] = Field(
        default=None, sa_column=Column("receipt_preference", Text, nullable=True)
    )
    email_address: Optional[str] = Field(
        default=None, sa_column=Column("email_address", Text, nullable=True)
    )
    mobile_phone_number: Optional[str] = Field(
        default=None, sa_column=Column("mobile_phone_number", Text, nullable=True)
    )
    created_at: Optional[datetime] = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column("createdAt", DateTime(timezone=True)),
    )
